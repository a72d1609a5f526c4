from __future__ import annotations

from typing import Optional


class DescriptorError(ValueError):
    """A single descriptor could not be compiled. The batch keeps going."""

    def __init__(self, message: str, key: Optional[tuple[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.key = key

    def with_key(self, key: tuple[str, str]) -> "DescriptorError":
        self.key = key
        return self

    def __str__(self) -> str:
        if self.key is None:
            return self.message
        module_name, handler_name = self.key
        return f"{module_name}::{handler_name}: {self.message}"


class SignatureMismatchError(DescriptorError):
    """Name list and type list of one argument entry have different lengths."""


class PathTemplateError(DescriptorError):
    """Path placeholders don't line up with the path-segment arguments."""


class OutputError(OSError):
    """Writing emission units failed (directory or file level)."""
