from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
from typing import Any, assert_never

from adapters.telemetry import LoggingCaptureObserver
from domain.capture import (
    Cancelled,
    CaptureState,
    Capturing,
    Complete,
    Failed,
    Idle,
    Initializing,
    Stitching,
    display_message,
)
from ports.vision import Region
from shared.config.loader import load_capture_settings

from apps.scrollcap.compose import build_service
from apps.scrollcap.settings import CaptureSettings

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


def parse_region(text: str) -> Region:
    try:
        x, y, w, h = (int(p) for p in text.split(","))
        return Region(x, y, w, h)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected X,Y,W,H with positive W,H: {text!r}") from e


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="scrollcap")
    ap.add_argument(
        "--region", type=parse_region, required=True, help="Capture region X,Y,W,H on the monitor."
    )
    ap.add_argument("--max-frames", type=int, help="Frame cap (overrides profile).")
    ap.add_argument("--overlap", type=float, help="Overlap fraction between frames, 0..1.")
    ap.add_argument("--delay", type=float, help="Seconds between captures.")
    ap.add_argument("--monitor", type=int, help="mss monitor index (1 = primary).")
    ap.add_argument("--profile", help="Config profile name under configs/profiles.")
    ap.add_argument("--quiet", action="store_true", help="Reduce console output.")
    return ap


def apply_overrides(settings: CaptureSettings, args: argparse.Namespace) -> CaptureSettings:
    update: dict[str, Any] = {}
    if args.max_frames is not None:
        update["max_frames"] = args.max_frames
    if args.overlap is not None:
        update["overlap_fraction"] = args.overlap
    if args.delay is not None:
        update["inter_frame_delay"] = args.delay
    if args.monitor is not None:
        update["source"] = settings.source.model_copy(update={"monitor": args.monitor})
    if not update:
        return settings
    # re-validate so CLI values get the same bounds as the profile
    return CaptureSettings.model_validate({**settings.model_dump(), **update})


def exit_code(state: CaptureState) -> int:
    match state:
        case Complete():
            return EXIT_OK
        case Cancelled():
            return EXIT_CANCELLED
        case Failed():
            return EXIT_FAILED
        case Idle() | Initializing() | Capturing() | Stitching():
            raise RuntimeError(f"capture ended in non-terminal state {state.kind}")
        case _:
            assert_never(state)


async def _capture(settings: CaptureSettings, region: Region, quiet: bool) -> int:
    service = build_service(settings)
    config = settings.to_config(region)
    handle = service.start_capture(region, config)
    session = service.session(handle)
    assert session is not None
    if not quiet:
        session.subscribe(LoggingCaptureObserver(handle, config.max_frames))

    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, service.cancel, handle)

    state = await service.wait(handle)
    print(f"[scrollcap] {display_message(state)}")
    if isinstance(state, Complete):
        result = state.result
        print(f"[scrollcap] {result.frame_count} frames -> {result.width}x{result.height}")
    return exit_code(state)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = apply_overrides(load_capture_settings(profile=args.profile), args)
    except ValueError as ex:
        print(f"[scrollcap] invalid settings: {ex}")
        return EXIT_USAGE

    logging.basicConfig(
        level=logging.WARNING if args.quiet else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not args.quiet:
        print(
            f"[scrollcap] region={args.region.as_roi()} "
            f"overlap={settings.overlap_fraction} max_frames={settings.max_frames} "
            f"monitor={settings.source.monitor}"
        )
    try:
        return asyncio.run(_capture(settings, args.region, args.quiet))
    except KeyboardInterrupt:
        if not args.quiet:
            print("\n[scrollcap] interrupted.")
        return EXIT_CANCELLED


if __name__ == "__main__":
    raise SystemExit(main())
