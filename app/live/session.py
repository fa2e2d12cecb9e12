"""Live recognition session: periodic capture, submission and overlay refresh.

Example:
    ```python
    async with RecognitionClient("http://localhost:8000") as client:
        async with LiveRecognitionSession(client, OpenCVFrameSource(0),
                                          OpenCVOverlayRenderer()) as session:
            await session.wait()
    ```
"""
import asyncio
from typing import Any, Optional

import numpy as np

from app.core.config import settings
from app.core.logging import get_logger
from app.live.capture import FrameSource, OverlayRenderer
from app.live.client import RecognitionClient
from app.live.stability import LiveResult, LiveState, StabilityController

logger = get_logger(__name__)

RESUME_KEYS = ("r",)
STOP_KEYS = ("q", "\x1b")


class LiveRecognitionSession:
    """Owns one capture task, one overlay task and at most one pending submission.

    A capture tick is skipped while the previous frame is still being
    recognized. While paused no frames are submitted; the overlay keeps being
    redrawn with the last recognized person until a resume or stop.
    """

    def __init__(
        self,
        client: RecognitionClient,
        source: FrameSource,
        renderer: Optional[OverlayRenderer] = None,
        interval: Optional[float] = None,
        overlay_refresh: Optional[float] = None,
        controller: Optional[StabilityController] = None,
    ) -> None:
        self.client = client
        self.source = source
        self.renderer = renderer
        self.interval = interval or settings.LIVE_CAPTURE_INTERVAL
        self.overlay_refresh = overlay_refresh or settings.LIVE_OVERLAY_REFRESH
        self.controller = controller or StabilityController()
        self.skipped_ticks = 0

        self._capture_task: Optional[asyncio.Task] = None
        self._overlay_task: Optional[asyncio.Task] = None
        self._submission: Optional[asyncio.Task] = None
        self._read_lock = asyncio.Lock()
        self._stop_requested = asyncio.Event()

    @property
    def state(self) -> LiveState:
        return self.controller.state

    @property
    def in_flight(self) -> bool:
        return self._submission is not None and not self._submission.done()

    async def start(self) -> None:
        if self.controller.state is not LiveState.IDLE:
            return
        await asyncio.to_thread(self.source.open)
        self._stop_requested.clear()
        self.controller.start()
        self._capture_task = asyncio.create_task(self._capture_loop())
        if self.renderer is not None:
            self._overlay_task = asyncio.create_task(self._overlay_loop())
        logger.info("Live session started", interval=self.interval)

    async def stop(self) -> None:
        """Cancel both loops and any pending submission, then release the device."""
        self.controller.stop()
        tasks = [t for t in (self._capture_task, self._overlay_task, self._submission) if t]
        try:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            self._capture_task = self._overlay_task = self._submission = None
            try:
                if self.renderer is not None:
                    self.renderer.clear()
            finally:
                self.source.release()
                self._stop_requested.set()
                logger.info("Live session stopped", skipped_ticks=self.skipped_ticks)

    def resume(self) -> bool:
        return self.controller.resume()

    def request_stop(self) -> None:
        self._stop_requested.set()

    async def wait(self) -> None:
        """Block until a stop is requested (stop key, signal or ``request_stop``)."""
        await self._stop_requested.wait()

    async def tick(self) -> bool:
        """Capture and submit one frame. Returns False if the tick was skipped."""
        if not self.controller.active:
            return False
        if self.in_flight:
            self.skipped_ticks += 1
            logger.debug("Skipping capture, previous frame still pending")
            return False

        frame = await self._read_frame()
        if frame is None:
            return False
        self._submission = asyncio.create_task(self._submit(frame))
        return True

    async def _capture_loop(self) -> None:
        while True:
            await self.tick()
            await asyncio.sleep(self.interval)

    async def _overlay_loop(self) -> None:
        while True:
            if self.controller.state is not LiveState.IDLE:
                frame = await self._read_frame()
                if frame is not None:
                    self._render(frame)
            await asyncio.sleep(self.overlay_refresh)

    async def _submit(self, frame: np.ndarray) -> None:
        result: Optional[LiveResult] = None
        try:
            frame_jpeg = await asyncio.to_thread(self.source.encode, frame)
            result = await self.client.recognize(frame_jpeg)
        except Exception as e:
            # Counts as "no identity"
            logger.warning("Frame submission failed", error=str(e), error_type=type(e).__name__)
        self.controller.handle_result(result)

    async def _read_frame(self) -> Optional[np.ndarray]:
        async with self._read_lock:
            return await asyncio.to_thread(self.source.read)

    def _render(self, frame: np.ndarray) -> None:
        key = self.renderer.render(frame, self.controller.overlay)
        if key in RESUME_KEYS:
            self.resume()
        elif key in STOP_KEYS:
            self.request_stop()

    async def __aenter__(self) -> "LiveRecognitionSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()
