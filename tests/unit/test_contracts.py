from __future__ import annotations

import logging

import pytest
from adapters.dx_capture import solid_frame
from adapters.telemetry import LoggingCaptureObserver, progress_event, state_event
from adapters.time import FakeClockPort
from domain.capture import Capturing, Complete, Failed, Stitching, StitchResult
from pydantic import ValidationError
from shared.contracts.v1.progress import ProgressEvent, StateEvent


def test_api_defaults_to_v1():
    e = StateEvent(session_id="s1", ts=0.0, state="IDLE", message="Ready")
    assert e.api == "v1"


def test_state_literal_is_enforced():
    with pytest.raises(ValidationError):
        StateEvent(session_id="s1", ts=0.0, state="SAVING", message="?")  # type: ignore[arg-type]


def test_progress_fraction():
    e = ProgressEvent(session_id="s", ts=1.0, frame_index=5, max_frames=20, width=1, height=1)
    assert e.progress == pytest.approx(0.25)


def test_state_event_mapping():
    assert state_event("s", Capturing(frame_index=4), 1.0).frame_index == 4
    assert state_event("s", Stitching(frame_count=3), 1.0).message == "Stitching images..."

    result = StitchResult(image=solid_frame(10, 30, 0), frame_count=2)
    done = state_event("s", Complete(result=result), 2.0)
    assert (done.state, done.width, done.height, done.frame_count) == ("COMPLETE", 10, 30, 2)

    failed = state_event("s", Failed(reason="no display"), 3.0)
    assert failed.message == "Error: no display"


def test_progress_event_mapping():
    e = progress_event("s", 10, 2, solid_frame(8, 6, 1), ts=0.5)
    assert (e.frame_index, e.width, e.height, e.y) == (2, 8, 6, None)


def test_logging_observer_logs_contract_dumps(caplog: pytest.LogCaptureFixture):
    clock = FakeClockPort(start=10.0)
    obs = LoggingCaptureObserver("sess", max_frames=5, clock=clock)
    with caplog.at_level(logging.INFO, logger="scrollstitch.events"):
        obs.on_progress(1, solid_frame(4, 4, 0))
        clock.advance(0.5)
        obs.on_state(Failed(reason="boom"))

    assert obs.last_progress is not None and obs.last_progress.ts == 10.0
    assert obs.last_state is not None and obs.last_state.ts == 10.5
    assert any('"frame_index":1' in r.getMessage() for r in caplog.records)
    assert any(r.levelno == logging.WARNING and "FAILED" in r.getMessage() for r in caplog.records)


def test_logging_observer_defaults_to_monotonic_clock():
    from adapters.time.monotonic import MonotonicClockPort

    obs = LoggingCaptureObserver("s1", max_frames=5)
    assert isinstance(obs.clock, MonotonicClockPort)
