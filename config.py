from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
MODEL_NAME = os.getenv("FITPLAN_MODEL", "gpt-4o-mini")
DATA_DIR = Path(os.getenv("FITPLAN_DATA_DIR", "data"))
DEFAULT_LANGUAGE = os.getenv("FITPLAN_LANGUAGE", "es")
BACKEND_URL = os.getenv("BACKEND_URL")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger with a plain text formatter.

    Safe to call more than once; existing root handlers are replaced.
    """
    log_level = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # The HTTP stack is chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
