"""Platform abstraction layer."""

from .process import ProcessError, run, run_silent, which

__all__ = [
    "ProcessError",
    "run",
    "run_silent",
    "which",
]
