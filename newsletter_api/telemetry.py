"""
Process-wide logging setup.

``init_logging`` configures the root logger exactly once per process;
later calls leave the first configuration in place. Components receive a
logger from ``get_logger`` rather than configuring logging themselves.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import TextIO

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_init_lock = threading.Lock()
_initialized = False


def init_logging(level: str = "INFO", stream: TextIO | None = None) -> bool:
    """
    Install the root handler.

    Returns:
        True if this call configured logging, False if it was already done
    """
    global _initialized
    with _init_lock:
        if _initialized:
            return False
        logging.basicConfig(
            level=getattr(logging, level.upper(), logging.INFO),
            format=LOG_FORMAT,
            stream=stream or sys.stdout,
        )
        _initialized = True
        return True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
