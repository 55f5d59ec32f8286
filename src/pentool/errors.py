"""
Error kinds for pentool edits.

Every EditError is local and recoverable: the editor turns it into a failed
EditResult. LatchCorruptionError is different, it flags a broken invariant
and is never caught by the core.
"""

from enum import Enum


class ErrorKind(str, Enum):
    UNKNOWN_ID = "unknown_id"
    DUPLICATE_ID = "duplicate_id"
    ALREADY_LATCHED = "already_latched"
    NOT_LATCHED = "not_latched"
    INVALID_LATCH = "invalid_latch"
    NOT_FULLY_CONNECTED = "not_fully_connected"
    ALREADY_GROUPED = "already_grouped"
    NOT_GROUPED = "not_grouped"
    HISTORY_AT_BOTTOM = "history_at_bottom"
    HISTORY_AT_TOP = "history_at_top"


class EditError(Exception):
    """Base class for recoverable edit failures."""
    kind = None

    def __init__(self, message, **evidence):
        super().__init__(message)
        self.evidence = evidence


class UnknownId(EditError):
    kind = ErrorKind.UNKNOWN_ID


class DuplicateId(EditError):
    kind = ErrorKind.DUPLICATE_ID


class AlreadyLatched(EditError):
    kind = ErrorKind.ALREADY_LATCHED


class NotLatched(EditError):
    kind = ErrorKind.NOT_LATCHED


class InvalidLatch(EditError):
    kind = ErrorKind.INVALID_LATCH


class NotFullyConnected(EditError):
    kind = ErrorKind.NOT_FULLY_CONNECTED


class AlreadyGrouped(EditError):
    kind = ErrorKind.ALREADY_GROUPED


class NotGrouped(EditError):
    kind = ErrorKind.NOT_GROUPED


class HistoryAtBottom(EditError):
    kind = ErrorKind.HISTORY_AT_BOTTOM


class HistoryAtTop(EditError):
    kind = ErrorKind.HISTORY_AT_TOP


class LatchCorruptionError(AssertionError):
    """A latch entry without its mirror. Signals a logic fault, never repaired."""

    def __init__(self, curve_id, edge, detail):
        super().__init__(f"one-sided latch on curve {curve_id} edge {getattr(edge, 'value', edge)}: {detail}")
        self.curve_id = curve_id
        self.edge = edge
