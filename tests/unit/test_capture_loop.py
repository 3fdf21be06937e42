from __future__ import annotations

import asyncio

import pytest
from adapters.dx_capture import FakeFrameSource, solid_frame
from domain.capture import (
    CancelToken,
    CaptureCancelled,
    CaptureConfig,
    CaptureLoop,
    SourceUnavailable,
)
from ports.vision import Region, SourceError

REGION = Region(10, 20, 16, 50)


def _config(**kw) -> CaptureConfig:
    base = {"region": REGION, "initial_delay": 0.0, "inter_frame_delay": 0.0}
    base.update(kw)
    return CaptureConfig(**base)


def _changing(n: int) -> list:
    return [solid_frame(16, 50, i) for i in range(n)]


def test_first_capture_failure_is_source_unavailable():
    src = FakeFrameSource([SourceError("no display")])
    with pytest.raises(SourceUnavailable):
        asyncio.run(CaptureLoop(src).run(_config()))
    assert src.calls == 1


def test_failure_after_first_frame_is_natural_termination():
    src = FakeFrameSource([solid_frame(16, 50, 1), SourceError("gone")])
    frames = asyncio.run(CaptureLoop(src).run(_config(max_frames=10)))
    assert len(frames) == 1
    assert src.calls == 2


def test_identical_frames_stop_after_two_captures():
    src = FakeFrameSource([solid_frame(16, 50, 7)])  # last item repeats
    frames = asyncio.run(CaptureLoop(src).run(_config(max_frames=10)))
    assert len(frames) == 1
    assert src.calls == 2


def test_changing_content_runs_to_cap():
    src = FakeFrameSource(_changing(20))
    frames = asyncio.run(CaptureLoop(src).run(_config(max_frames=6)))
    assert len(frames) == 6
    assert src.calls == 6
    assert [f.index for f in frames] == [1, 2, 3, 4, 5, 6]


def test_max_frames_one_captures_once():
    src = FakeFrameSource(_changing(3))
    frames = asyncio.run(CaptureLoop(src).run(_config(max_frames=1)))
    assert len(frames) == 1
    assert src.calls == 1


def test_regions_advance_by_scroll_step():
    src = FakeFrameSource(_changing(4))
    frames = asyncio.run(CaptureLoop(src).run(_config(max_frames=4, overlap_fraction=0.2)))
    # 50px * 0.8 = 40px per step, measured from the initial origin
    assert [r.y for r in src.requests] == [20, 60, 100, 140]
    assert all((r.x, r.width, r.height) == (10, 16, 50) for r in src.requests)
    assert frames[2].region == Region(10, 100, 16, 50)


def test_timeout_after_first_frame_terminates_naturally():
    class SlowAfterFirst(FakeFrameSource):
        async def capture(self, region, timeout):
            if self.calls >= 1:
                self.stall_s = 1.0
            return await super().capture(region, timeout)

    src = SlowAfterFirst(_changing(5))
    frames = asyncio.run(CaptureLoop(src).run(_config(max_frames=5, capture_timeout=0.05)))
    assert len(frames) == 1


def test_first_capture_timeout_is_source_unavailable():
    src = FakeFrameSource(_changing(2), stall_s=1.0)
    with pytest.raises(SourceUnavailable):
        asyncio.run(CaptureLoop(src).run(_config(capture_timeout=0.05)))


def test_progress_callback_sees_kept_frames_only():
    seen: list[int] = []
    src = FakeFrameSource([solid_frame(16, 50, 1), solid_frame(16, 50, 2), solid_frame(16, 50, 2)])
    frames = asyncio.run(
        CaptureLoop(src).run(_config(max_frames=10), on_frame=lambda i, f: seen.append(i))
    )
    assert seen == [1, 2]
    assert len(frames) == 2


def test_cancel_before_run_raises_cancelled():
    token = CancelToken()
    token.cancel()
    src = FakeFrameSource(_changing(3))
    with pytest.raises(CaptureCancelled):
        asyncio.run(CaptureLoop(src).run(_config(), token))
    assert src.calls == 0


def test_cancel_during_delay_wakes_loop():
    async def scenario() -> float:
        token = CancelToken()
        src = FakeFrameSource(_changing(10))
        loop = asyncio.get_running_loop()
        started = loop.time()
        task = asyncio.create_task(
            CaptureLoop(src).run(_config(max_frames=10, inter_frame_delay=5.0), token)
        )
        await asyncio.sleep(0.05)
        token.cancel()
        with pytest.raises(CaptureCancelled):
            await task
        return loop.time() - started

    assert asyncio.run(scenario()) < 1.0


def test_in_flight_result_discarded_after_cancel():
    token = CancelToken()

    class CancelsMidCapture(FakeFrameSource):
        async def capture(self, region, timeout):
            frame = await super().capture(region, timeout)
            if self.calls == 2:
                token.cancel()
            return frame

    src = CancelsMidCapture(_changing(5))
    with pytest.raises(CaptureCancelled):
        asyncio.run(CaptureLoop(src).run(_config(max_frames=5), token))
    assert src.calls == 2


def test_unexpected_source_exception_propagates():
    src = FakeFrameSource([solid_frame(16, 50, 1), KeyError("bug")])
    with pytest.raises(KeyError):
        asyncio.run(CaptureLoop(src).run(_config(max_frames=3)))
