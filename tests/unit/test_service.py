from __future__ import annotations

import asyncio

import pytest
from adapters.dx_capture import FakeFrameSource, solid_frame
from adapters.telemetry import FakeCaptureObserver
from domain.capture import (
    Cancelled,
    CaptureConfig,
    CaptureService,
    Complete,
    MeanAbsDiffComparator,
    SessionActiveError,
    build_comparator,
)
from ports.vision import Region


def _frames(n: int) -> list:
    return [solid_frame(30, 60, 5 * i) for i in range(n)]


def _config(**kw) -> CaptureConfig:
    base = {
        "region": Region(0, 0, 1, 1),  # replaced by start_capture
        "initial_delay": 0.0,
        "inter_frame_delay": 0.0,
        "max_frames": 4,
    }
    base.update(kw)
    return CaptureConfig(**base)


def test_start_capture_targets_given_region_and_completes():
    async def scenario():
        src = FakeFrameSource(_frames(10))
        service = CaptureService(src)
        obs = FakeCaptureObserver()
        handle = service.start_capture(Region(5, 6, 30, 60), _config(), observer=obs)
        assert handle in service.active_handles()
        state = await service.wait(handle)
        return src, service, handle, state, obs

    src, service, handle, state, obs = asyncio.run(scenario())
    assert isinstance(state, Complete)
    assert state.result.size() == (30, 60 + 3 * 48)
    assert src.requests[0] == Region(5, 6, 30, 60)
    assert isinstance(obs.terminal, Complete)
    # collected sessions are forgotten
    assert service.session(handle) is None
    assert service.active_handles() == []


def test_duplicate_active_handle_rejected_synchronously():
    async def scenario():
        service = CaptureService(FakeFrameSource(_frames(10)))
        service.start_capture(Region(0, 0, 30, 60), _config(inter_frame_delay=0.05), handle="gesture")
        with pytest.raises(SessionActiveError):
            service.start_capture(Region(0, 0, 30, 60), _config(), handle="gesture")
        service.cancel("gesture")
        return await service.wait("gesture")

    assert isinstance(asyncio.run(scenario()), Cancelled)


def test_handle_reusable_after_terminal():
    async def scenario():
        service = CaptureService(FakeFrameSource(_frames(10)))
        service.start_capture(Region(0, 0, 30, 60), _config(max_frames=1), handle="g")
        first = await service.session("g").wait()
        second_handle = service.start_capture(Region(0, 0, 30, 60), _config(max_frames=1), handle="g")
        return first, second_handle, await service.wait("g")

    first, handle, second = asyncio.run(scenario())
    assert isinstance(first, Complete)
    assert handle == "g"
    assert isinstance(second, Complete)


def test_cancel_unknown_or_terminal_is_noop():
    service = CaptureService(FakeFrameSource(_frames(1)))
    service.cancel("nope")
    assert service.state("nope") is None


def test_comparator_factory_is_used():
    made = []

    def factory(config):
        cmp = build_comparator(config)
        made.append(cmp)
        return cmp

    async def scenario():
        service = CaptureService(FakeFrameSource(_frames(3)), comparator_factory=factory)
        handle = service.start_capture(
            Region(0, 0, 30, 60), _config(comparator="mean_abs_diff", max_frames=2)
        )
        return await service.wait(handle)

    assert isinstance(asyncio.run(scenario()), Complete)
    assert len(made) == 1 and isinstance(made[0], MeanAbsDiffComparator)
