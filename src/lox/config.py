"""Interpreter configuration constants, with environment overrides."""

from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Parser limit on parameters and call arguments
MAX_ARITY: int = 8

# Lox call frames allowed before a stack overflow is reported
MAX_CALL_DEPTH: int = _env_int("LOX_MAX_CALL_DEPTH", 256)

# Upper bound on Python frames spent per Lox call frame
PY_FRAMES_PER_CALL: int = 16

# Logging
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL: str = os.environ.get("LOX_LOG_LEVEL", "WARNING").upper()

# Interactive prompt
PROMPT: str = "> "

# Exit codes (sysexits)
EXIT_OK: int = 0
EXIT_USAGE: int = 64
EXIT_DATAERR: int = 65
EXIT_NOINPUT: int = 66
EXIT_SOFTWARE: int = 70
