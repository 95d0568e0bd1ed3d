import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Allowed browser origins for HTTP and Socket.IO (comma separated)
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000',
        ).split(',') if o.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Game rules
    WINNING_SCORE = int(os.environ.get('WINNING_SCORE', '10000'))
    # Points needed in a single turn to get on the board. 0 disables.
    MIN_ENTRY_SCORE = int(os.environ.get('MIN_ENTRY_SCORE', '0'))
    # Tables
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '5'))
    NAME_MAX_LENGTH = int(os.environ.get('NAME_MAX_LENGTH', '20'))
    DEFAULT_PLAYER_NAME = os.environ.get('DEFAULT_PLAYER_NAME', 'Captain')
    # Entries kept in each room's action log
    LOG_MAX_ENTRIES = int(os.environ.get('LOG_MAX_ENTRIES', '20'))
