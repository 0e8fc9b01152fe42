import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

ROOM_CODE_LENGTH = 6
ROOM_CODE_SPACE = 10 ** ROOM_CODE_LENGTH
MAX_CODE_ATTEMPTS = int(os.getenv("MAX_CODE_ATTEMPTS", 5))

ROOM_TTL_SECONDS = int(os.getenv("ROOM_TTL_SECONDS", 60 * 60 * 24))
DEFAULT_MAX_PLAYERS = int(os.getenv("DEFAULT_MAX_PLAYERS", 8))
DEFAULT_TARGET_POINTS = int(os.getenv("DEFAULT_TARGET_POINTS", 1000))
DEFAULT_HOST_NAME = "Host"

PING_INTERVAL_SECONDS = float(os.getenv("PING_INTERVAL_SECONDS", 30))
SWEEP_INTERVAL_SECONDS = float(os.getenv("SWEEP_INTERVAL_SECONDS", 60))
