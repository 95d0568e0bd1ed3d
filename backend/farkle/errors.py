"""Errors raised by the room and turn services.

Every error here is recoverable by the player: the gateway reports it to the
offending connection only and no room state changes.
"""


class FarkleError(Exception):
    kind = 'FarkleError'
    default_message = 'Something went wrong.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'kind': self.kind, 'message': self.message}


class RoomNotFound(FarkleError):
    kind = 'RoomNotFound'
    default_message = "That table code doesn't exist."


class RoomFull(FarkleError):
    kind = 'RoomFull'
    default_message = 'That table already has two players.'


class NameCollision(FarkleError):
    kind = 'NameCollision'
    default_message = 'That name is already playing at this table.'


class NotYourTurn(FarkleError):
    kind = 'NotYourTurn'
    default_message = 'Not your turn.'


class IllegalPhaseForIntent(FarkleError):
    kind = 'IllegalPhaseForIntent'
    default_message = "You can't do that right now."


class InvalidSelection(FarkleError):
    kind = 'InvalidSelection'
    default_message = 'Select scoring dice first.'


class NothingToBank(FarkleError):
    kind = 'NothingToBank'
    default_message = 'You have 0 turn points.'
