"""Render error taxonomy.

Every failure the pipeline reports is a ``RenderError`` subclass carrying a
stable ``code`` and a single-line message suitable for display:

- ``InputError``: a configuration value (sample rate, ...) is invalid
- ``ResourceError``: the bank or performance file is missing or malformed
- ``EngineError``: the synthesis engine rejected the bank/config
- ``OutputError``: the destination could not be written
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ResourceKind(Enum):
    """Which input resource a ``ResourceError`` refers to."""

    BANK = "bank"
    PERFORMANCE = "performance"


class RenderError(Exception):
    """Base class for all structured render failures."""

    code = "render_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class InputError(RenderError):
    code = "input_error"


class ResourceError(RenderError):
    code = "resource_error"

    def __init__(self, kind: ResourceKind, path: str | Path, reason: str) -> None:
        self.kind = kind
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Invalid {kind.value} file {self.path}: {reason}")

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["kind"] = self.kind.value
        return d


class EngineError(RenderError):
    code = "engine_error"


class OutputError(RenderError):
    code = "output_error"
