from __future__ import annotations

from .app import app, main
from .runner import CliOptions, run_session, run_submit
from .session import SessionLoop
from .utils import (
    EXIT_ENV_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_OK,
    EXIT_PROVIDER_ERROR,
)

__all__ = [
    "EXIT_ENV_ERROR",
    "EXIT_INPUT_ERROR",
    "EXIT_OK",
    "EXIT_PROVIDER_ERROR",
    "CliOptions",
    "SessionLoop",
    "app",
    "main",
    "run_session",
    "run_submit",
]
