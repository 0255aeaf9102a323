"""
Errors
======
Exception hierarchy shared by every pipeline stage.

Fatality:
    ParseError          — malformed diff syntax, aborts the run
    SegmentationError   — no valid codepoint boundary reachable, aborts the run
    RemoteScanError     — scan transport/auth/quota failure, aborts the run
    RangeOverlapError   — IntervalIndex insertion rejected, caller decides
    AnnotationPostError — fatal only for the terminal check-run update
    ConfigError         — missing environment or repository config
    DiffSourceError     — the raw diff could not be read or computed
"""


class DiffScanError(Exception):
    """Base class for all diffscan errors."""


class ParseError(DiffScanError):
    """Raised when raw diff text cannot be parsed."""

    def __init__(self, message: str, line_number: int = 0) -> None:
        self.line_number = line_number
        if line_number:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class SegmentationError(DiffScanError):
    """Raised when line content cannot be split on a codepoint boundary."""


class RemoteScanError(DiffScanError):
    """Raised when the remote classification service fails a batch."""


class RangeOverlapError(DiffScanError):
    """Raised when a range would overlap an existing IntervalIndex entry."""


class AnnotationPostError(DiffScanError):
    """Raised when the host rejects a check-run create or update."""


class ConfigError(DiffScanError):
    """Raised when required configuration is missing or invalid."""


class SensitiveContentFound(DiffScanError):
    """Raised by hosts that signal findings by failing the CI step."""


class DiffSourceError(DiffScanError):
    """Raised when the raw diff text cannot be obtained."""
