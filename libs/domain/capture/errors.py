from __future__ import annotations


class CaptureError(Exception):
    """Capture loop could not produce frames."""


class SourceUnavailable(CaptureError):
    """First capture failed; there is nothing to stitch."""


class CaptureCancelled(CaptureError):
    """User cancelled; collected frames were discarded."""


class StitchError(Exception):
    """Stitch input violates its preconditions (caller bug, never retried)."""


class DimensionMismatch(StitchError):
    pass


class EmptyFrameSequence(StitchError):
    pass


class SessionError(RuntimeError):
    pass


class SessionStateError(SessionError):
    """Operation not valid in the session's current state."""


class SessionActiveError(SessionError):
    """A session is already active for this handle."""
