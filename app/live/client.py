"""HTTP client submitting live frames for recognition."""
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.logging import get_logger
from app.live.stability import LiveResult

logger = get_logger(__name__)


class RecognitionClient:
    """Async client for the ``/recognize-live`` endpoint.

    Every failure (transport error, non-200 status, unexpected body) is
    reported as ``None``, which the live loop treats as "no identity".
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.endpoint = f"{settings.API_V1_STR}/face/recognize-live"
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)

    async def recognize(self, frame_jpeg: bytes) -> Optional[LiveResult]:
        files = {"image": ("frame.jpg", frame_jpeg, "image/jpeg")}
        try:
            response = await self._client.post(self.endpoint, files=files)
            response.raise_for_status()
            return LiveResult.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            logger.debug("Frame rejected", status_code=e.response.status_code,
                         detail=_detail(e.response))
        except httpx.HTTPError as e:
            logger.warning("Failed to send frame", error=str(e))
        except (ValueError, PydanticValidationError) as e:
            logger.warning("Unexpected recognition response", error=str(e))
        return None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RecognitionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def _detail(response: httpx.Response) -> Any:
    try:
        return response.json().get("detail")
    except ValueError:
        return response.text
