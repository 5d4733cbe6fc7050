import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scheduler.db")

# When false, a time with no published slot row can still be booked.
REQUIRE_PUBLISHED_SLOT = _get_bool(os.getenv("REQUIRE_PUBLISHED_SLOT"), default=True)

CORS_ORIGINS = _get_list(
    os.getenv("CORS_ORIGINS"),
    default=["http://localhost:3000", "http://localhost:5173"],
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

UPCOMING_SLOT_LIMIT = int(os.getenv("UPCOMING_SLOT_LIMIT", "5"))
ASSISTANT_SLOT_LIMIT = int(os.getenv("ASSISTANT_SLOT_LIMIT", "3"))

# The booking assistant only calls a chat completions endpoint when a key is set.
LLM_API_KEY = os.getenv("LLM_API_KEY", "")
LLM_CHAT_URL = os.getenv("LLM_CHAT_URL", "https://api.openai.com/v1/chat/completions")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-3.5-turbo")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))


def is_in_memory_database(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:"}


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and is_in_memory_database(DATABASE_URL):
        raise RuntimeError("An in-memory DATABASE_URL cannot be used in production.")
    if UPCOMING_SLOT_LIMIT < 1 or ASSISTANT_SLOT_LIMIT < 1:
        raise RuntimeError("Slot limits must be positive integers.")
