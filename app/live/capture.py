"""Frame sources and overlay renderers for the live loop."""
from abc import ABC, abstractmethod
from typing import Optional, Union

import cv2
import numpy as np

from app.core.config import settings
from app.core.logging import get_logger
from app.live.stability import Overlay

logger = get_logger(__name__)

OVERLAY_COLOR = (0, 255, 0)


class FrameSource(ABC):
    """Produces camera frames. ``read`` is blocking and runs in a worker thread."""

    @abstractmethod
    def open(self) -> None:
        """Acquire the capture device."""

    @abstractmethod
    def read(self) -> Optional[np.ndarray]:
        """Grab one frame, None if none is available."""

    @abstractmethod
    def encode(self, frame: np.ndarray) -> bytes:
        """Encode a frame as JPEG for submission."""

    @abstractmethod
    def release(self) -> None:
        """Release the capture device. Safe to call more than once."""


class OverlayRenderer(ABC):
    """Shows frames with the recognition overlay."""

    @abstractmethod
    def render(self, frame: np.ndarray, overlay: Optional[Overlay]) -> Optional[str]:
        """Draw a frame; returns a pressed key, if any."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the overlay and close the output."""


class OpenCVFrameSource(FrameSource):
    """``cv2.VideoCapture`` backed frame source."""

    def __init__(self, device: Union[int, str] = 0, jpeg_quality: Optional[int] = None) -> None:
        self.device = device
        self.jpeg_quality = jpeg_quality or settings.JPEG_QUALITY
        self._capture: Optional[cv2.VideoCapture] = None

    def open(self) -> None:
        capture = cv2.VideoCapture(self.device)
        if not capture.isOpened():
            capture.release()
            raise RuntimeError(f"Unable to open capture device {self.device!r}")
        self._capture = capture
        logger.info("Capture device opened", device=self.device)

    def read(self) -> Optional[np.ndarray]:
        if self._capture is None:
            return None
        ok, frame = self._capture.read()
        return frame if ok else None

    def encode(self, frame: np.ndarray) -> bytes:
        ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            raise ValueError("Failed to encode frame")
        return buffer.tobytes()

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Capture device released", device=self.device)


class OpenCVOverlayRenderer(OverlayRenderer):
    """Draws the box and a "name (confidence%)" label in a HighGUI window."""

    def __init__(self, window_name: str = "Live recognition") -> None:
        self.window_name = window_name
        self._shown = False

    @staticmethod
    def draw(frame: np.ndarray, overlay: Optional[Overlay]) -> np.ndarray:
        canvas = frame.copy()
        if overlay is None:
            return canvas

        if overlay.box is not None:
            box = overlay.box
            top_left = (int(box.x), int(box.y))
            bottom_right = (int(box.x + box.width), int(box.y + box.height))
            cv2.rectangle(canvas, top_left, bottom_right, OVERLAY_COLOR, 3)
            x, y = int(box.x), int(box.y) - 10
        else:
            x, y = 10, 30
        cv2.putText(canvas, overlay.label, (x, max(y, 20)), cv2.FONT_HERSHEY_SIMPLEX,
                    0.7, OVERLAY_COLOR, 2)
        return canvas

    def render(self, frame: np.ndarray, overlay: Optional[Overlay]) -> Optional[str]:
        cv2.imshow(self.window_name, self.draw(frame, overlay))
        self._shown = True
        key = cv2.waitKey(1) & 0xFF
        if key == 0xFF:
            return None
        return chr(key)

    def clear(self) -> None:
        if self._shown:
            cv2.destroyWindow(self.window_name)
            cv2.waitKey(1)
            self._shown = False
