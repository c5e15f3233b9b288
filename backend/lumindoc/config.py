import logging
import os
from typing import Literal

from dotenv import load_dotenv
from supabase import AsyncClient as SU_Client
from supabase import acreate_client

import redis


load_dotenv()

ENVIRONMENT = os.environ.get("ENVIRONMENT", "production")

if ENVIRONMENT == "development":
    SUPABASE_URL = os.getenv("SUPABASE_URL_DEV")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY_DEV")
else:
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

_supabase_client: SU_Client | None = None
_redis_client: redis.Redis | None = None

GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"
)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "google/gemini-flash-1.5")
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "gemma3")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_QUEUE = ["lumindoc"]
REDIS_MAX_WORKERS = 4
REDIS_DEFAULT_TTL = 300
REDIS_MAX_RETRY = 3
REDIS_RETRY_INTERVALS = [10, 20, 30]
REDIS_TIMEOUT = 180

LOG_COLORS = {
    "RED": "\033[31m",
    "GREEN": "\033[32m",
    "YELLOW": "\033[33m",
    "BLUE": "\033[34m",
    "MAGENTA": "\033[35m",
    "CYAN": "\033[36m",
    "WHITE": "\033[37m",
    "BRIGHT_RED": "\033[91m",
    "BRIGHT_GREEN": "\033[92m",
    "BRIGHT_YELLOW": "\033[93m",
    "RESET": "\033[0m",
}

ColorType = Literal[
    "RED", "GREEN", "YELLOW", "BLUE", "MAGENTA",
    "CYAN", "WHITE", "BRIGHT_RED", "BRIGHT_GREEN", "BRIGHT_YELLOW",
]


class ColoredFormatter(logging.Formatter):
    def __init__(self, fmt: str) -> None:
        super().__init__(fmt)
        self.colors = {
            logging.DEBUG: "BRIGHT_YELLOW",
            logging.INFO: "GREEN",
            logging.WARNING: "YELLOW",
            logging.ERROR: "RED",
            logging.CRITICAL: "BRIGHT_RED",
        }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = getattr(record, "custom_color", None) or self.colors.get(record.levelno, "WHITE")
        return f"{LOG_COLORS[color]}{message}{LOG_COLORS['RESET']}"


class CustomLogger:
    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(self, level: int, message: str, color: ColorType | None = None) -> None:
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(
            self._logger.name, level, "", 0, message, (), None
        )
        if color:
            record.custom_color = color
        self._logger.handle(record)

    def info(self, message: str, color: ColorType | None = None) -> None:
        self._log(logging.INFO, message, color)

    def debug(self, message: str, color: ColorType | None = None) -> None:
        self._log(logging.DEBUG, message, color)

    def warning(self, message: str, color: ColorType | None = None) -> None:
        self._log(logging.WARNING, message, color)

    def error(self, message: str, color: ColorType | None = None) -> None:
        self._log(logging.ERROR, message, color)

    def __getattr__(self, name: str):
        return getattr(self._logger, name)


def setup_logger(name: str = __name__) -> CustomLogger:
    logger = logging.getLogger(name)

    if logger.handlers:
        return CustomLogger(logger)

    level = logging.DEBUG if os.getenv("LOG_LEVEL", "").upper() == "DEBUG" else logging.INFO
    logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    return CustomLogger(logger)


logger = setup_logger("config")

STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "documents")
DOCUMENTS_TABLE = "documents"
DEFAULT_USER_ID = "anonymous"
MAX_USER_ID_LENGTH = 128

MAX_FILE_SIZE_MB = 10
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
SUPPORTED_FILE_TYPES = {
    "application/pdf": "pdf",
    "text/plain": "txt",
}
FILE_MEDIA_TYPES = {value: key for key, value in SUPPORTED_FILE_TYPES.items()}

SUMMARIZATION_MODEL = os.getenv("SUMMARIZATION_MODEL", "gemini-1.5-flash")
SUMMARY_LANGUAGE = os.getenv("SUMMARY_LANGUAGE", "English")
MAX_SUMMARY_TOKENS = 4096
MAX_QUICK_SUMMARY_TOKENS = 512
MAX_PROMPT_CHARS = 200_000
TEMPERATURE = 0.4

MAX_PAGE_SIZE = 50
PREVIEW_LENGTH = 1000


def llm_configured() -> bool:
    return bool(GEMINI_API_KEY or OPENROUTER_API_KEY or OLLAMA_BASE_URL)


async def get_supabase_client() -> SU_Client:
    global _supabase_client

    if _supabase_client:
        return _supabase_client

    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("Supabase credentials not configured")

    _supabase_client = await acreate_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    return _supabase_client


def get_redis_client() -> redis.Redis:
    global _redis_client

    if _redis_client:
        return _redis_client

    try:
        _redis_client = redis.Redis(
            host=REDIS_HOST,
            port=REDIS_PORT,
            db=REDIS_DB,
            decode_responses=False,
        )
        _redis_client.ping()
        logger.info(f"Connected to Redis @ {REDIS_HOST}:{REDIS_PORT}", "BLUE")
    except Exception as e:
        _redis_client = None
        logger.error(f"Failed to connect to Redis: {e}")
        raise

    return _redis_client
