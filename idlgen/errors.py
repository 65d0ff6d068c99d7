"""Error types raised by the idlgen engine."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional


class IdlgenError(RuntimeError):
    """Base error carrying an optional hint and context for the user."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for key, value in self.context.items():
            if value:
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)


class ConfigError(IdlgenError):
    """Raised when the project configuration cannot be parsed."""


class ScanError(IdlgenError):
    """Raised when a source root cannot be walked for stale files."""


class CompilerUnavailableError(IdlgenError):
    """Raised when the selected backend compiler cannot be located or loaded."""


class UnsupportedTranslatorError(IdlgenError):
    """Raised when the configured compiler selector names no known backend."""

    def __init__(self, selector: str, *, known: Optional[list[str]] = None) -> None:
        hint = None
        if known:
            hint = "Use one of: " + ", ".join(known)
        super().__init__(f"Compiler not supported: {selector}", hint=hint)
        self.selector = selector


class UnsupportedOptionError(IdlgenError):
    """Raised when a source option cannot be expressed by the selected backend."""


class TranslationError(IdlgenError):
    """Raised when a backend reports failure for a source file."""

    def __init__(
        self,
        message: str,
        *,
        source_file: Path | None = None,
        exit_code: int | None = None,
        hint: str | None = None,
    ) -> None:
        context = {}
        if source_file is not None:
            context["file"] = str(source_file)
        if exit_code is not None:
            context["exit code"] = str(exit_code)
        super().__init__(message, hint=hint, context=context)
        self.source_file = source_file
        self.exit_code = exit_code


class TimestampCopyError(IdlgenError):
    """Raised when a processed file cannot be recorded in the timestamp store."""


class OutputDirectoryError(IdlgenError):
    """Raised when the output directory cannot be written to."""


__all__ = [
    "CompilerUnavailableError",
    "ConfigError",
    "IdlgenError",
    "OutputDirectoryError",
    "ScanError",
    "TimestampCopyError",
    "TranslationError",
    "UnsupportedOptionError",
    "UnsupportedTranslatorError",
]
