"""Exceptions raised by the session parser."""


class CcxError(Exception):
    """Base class for ccx errors."""


class SessionParseError(CcxError):
    """A session file could not be parsed at all (missing, unreadable, ...)."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class LineTooLongError(SessionParseError):
    """A single line exceeded the maximum line size.

    The stream cannot be advanced safely past such a line, so the whole
    parse is aborted rather than skipping the record.
    """

    def __init__(self, path, line_number: int, limit: int):
        self.line_number = line_number
        self.limit = limit
        super().__init__(path, f"line {line_number} exceeds {limit} bytes")


class RecordDecodeError(CcxError, ValueError):
    """One log line is not a JSON object."""
