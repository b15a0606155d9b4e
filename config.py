"""
config.py
Environment-driven settings and logging setup.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

DB_PATH = Path(os.environ.get("DAHIRA_DB", Path(__file__).with_name("dahira.db")))
LOG_LEVEL = os.environ.get("DAHIRA_LOG_LEVEL", "INFO").upper()

DAHIRA_NAME = os.environ.get("DAHIRA_NAME", "Dahira Daara Askhaboul Janaty")
CURRENCY = "F CFA"

# Security codes required to archive / reset data (overridable from Settings)
DEFAULT_ARCHIVE_CODE = os.environ.get("DAHIRA_ARCHIVE_CODE", "ARCHIVE2024")
DEFAULT_RESET_CODE = os.environ.get("DAHIRA_RESET_CODE", "DAHIRA2024")

ADULT_AGE = 18
REPORT_HISTORY_LIMIT = 20

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger once (Streamlit reruns the script on every interaction).
    """
    root = logging.getLogger()
    if getattr(root, "_dahira_configured", False):
        return
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
    root._dahira_configured = True
