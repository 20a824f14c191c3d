import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Empty picks eventlet, or threading on Windows and Python >= 3.13
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "")

    # Words (empty means the built-in list)
    WORDS_FILE = os.environ.get("WORDS_FILE", "")

    # Rooms
    ROOM_CODE_LENGTH = int(os.environ.get("ROOM_CODE_LENGTH", "5"))
    DEFAULT_MAX_ROUNDS = int(os.environ.get("DEFAULT_MAX_ROUNDS", "3"))
    DEFAULT_MAX_PLAYERS = int(os.environ.get("DEFAULT_MAX_PLAYERS", "5"))
    MAX_ROUNDS_LIMIT = int(os.environ.get("MAX_ROUNDS_LIMIT", "20"))
    MAX_PLAYERS_LIMIT = int(os.environ.get("MAX_PLAYERS_LIMIT", "20"))
    AUTO_CREATE_ROOMS_ON_JOIN = os.environ.get("AUTO_CREATE_ROOMS_ON_JOIN", "0") == "1"

    # Game
    ROUND_DURATION_SEC = int(os.environ.get("ROUND_DURATION_SEC", "60"))
    WORD_CHOICES_COUNT = int(os.environ.get("WORD_CHOICES_COUNT", "3"))
    NEXT_ROUND_DELAY_SEC = int(os.environ.get("NEXT_ROUND_DELAY_SEC", "3"))
    # A round nobody can guess in ends at once instead of running the clock.
    END_ROUND_WITHOUT_GUESSERS = os.environ.get("END_ROUND_WITHOUT_GUESSERS", "0") == "1"
