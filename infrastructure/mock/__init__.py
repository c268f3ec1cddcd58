"""In-memory driver implementations."""

from .driver import MockDriver

__all__ = ["MockDriver"]
