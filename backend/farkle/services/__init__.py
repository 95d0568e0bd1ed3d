"""Game domain services: scoring, the turn engine and the room manager.

Nothing in this package knows about Flask or Socket.IO, keeping transport
concerns in ``farkle.socketio_events`` and the core game mechanics here.
"""
