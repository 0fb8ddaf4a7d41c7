"""Runtime settings, read from the environment once at import."""

import logging
import os

HOST: str = os.getenv("WHEALTHY_HOST", "127.0.0.1")
PORT: int = int(os.getenv("WHEALTHY_PORT", "8000"))
LOG_LEVEL: str = os.getenv("WHEALTHY_LOG_LEVEL", "INFO").upper()

_DEFAULT_CORS_ORIGINS = "http://127.0.0.1:8000,http://localhost:8000"
CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("WHEALTHY_CORS_ORIGINS", _DEFAULT_CORS_ORIGINS).split(",") if o.strip()
]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
