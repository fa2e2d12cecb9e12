"""CLI tool for live face recognition from a camera.

Frames are sent to a running service once per interval. Press ``r`` in the
preview window to resume after a pause, ``q`` or Esc to quit.

Usage:
    python -m app.cli.live_recognize --url http://localhost:8000 --camera 0 --interval 1.0
"""
import argparse
import asyncio
import signal
import sys
from typing import List, Optional, Union

from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.live.capture import OpenCVFrameSource, OpenCVOverlayRenderer
from app.live.client import RecognitionClient
from app.live.session import LiveRecognitionSession

logger = get_logger(__name__)


def _install_signal_handlers(session: LiveRecognitionSession) -> None:
    loop = asyncio.get_running_loop()

    def handle_signal(signum, frame=None):
        logger.info("Received shutdown signal, stopping live recognition", signal=signum)
        loop.call_soon_threadsafe(session.request_stop)

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, handle_signal, signum)
        except NotImplementedError:
            # Windows event loops
            signal.signal(signum, handle_signal)


def _parse_camera(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value


async def run(url: str, camera: Union[int, str], interval: float, headless: bool = False) -> int:
    """Run a live session until stopped."""
    renderer = None if headless else OpenCVOverlayRenderer()
    async with RecognitionClient(url) as client:
        session = LiveRecognitionSession(
            client,
            OpenCVFrameSource(camera),
            renderer=renderer,
            interval=interval,
        )
        try:
            async with session:
                _install_signal_handlers(session)
                logger.info("Live recognition running", url=url, camera=camera, interval=interval)
                await session.wait()
        except RuntimeError as e:
            logger.error("Live recognition failed", error=str(e))
            return 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Recognize faces live from a camera")
    parser.add_argument(
        "--url",
        default=f"http://localhost:{settings.PORT}",
        help="Base URL of the recognition service"
    )
    parser.add_argument(
        "--camera",
        default="0",
        help="Camera index or video source URL"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.LIVE_CAPTURE_INTERVAL,
        help="Seconds between submitted frames"
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Do not open a preview window"
    )
    args = parser.parse_args(argv)

    setup_logging()
    sys.exit(asyncio.run(run(args.url, _parse_camera(args.camera), args.interval, args.headless)))


if __name__ == "__main__":
    main()
