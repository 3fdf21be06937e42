from .fakes import FakeCaptureObserver
from .log_observer import LoggingCaptureObserver, progress_event, state_event

__all__ = [
    "FakeCaptureObserver",
    "LoggingCaptureObserver",
    "progress_event",
    "state_event",
]
