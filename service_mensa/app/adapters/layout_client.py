"""
Layout rendering client for the Mensa service.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.errors import RenderUnavailableError
from shared.metrics import MetricsCollector

from ..domain.models import Mensa, RenderedLayout

SVG_MEDIA_TYPE = "image/svg+xml"
DEFAULT_RENDER_TIMEOUT_SECONDS = 10.0


class RenderState(Enum):
    """Lifecycle of a single render call."""
    IDLE = "idle"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


def build_render_payload(mensa: Mensa) -> Dict[str, Any]:
    """Project a mensa onto the body expected by the renderer."""
    return {
        "id": str(mensa.mensa_id),
        "x": mensa.x,
        "y": mensa.y,
        "width": mensa.width,
        "height": mensa.height,
        "tables": [table.to_payload() for table in mensa.tables],
    }


class LayoutRenderClient:
    """Client for the layout rendering microservice.

    Each call makes exactly one request. The whole round trip is bounded by
    ``timeout_seconds``; a timeout, transport error, non-2xx status or empty
    body all surface as RenderUnavailableError.
    """

    def __init__(self, layout_service_url: str,
                 timeout_seconds: float = DEFAULT_RENDER_TIMEOUT_SECONDS,
                 render_path: str = "/render",
                 metrics: Optional[MetricsCollector] = None):
        self.base_url = layout_service_url.rstrip('/')
        self.render_path = render_path
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics
        self.logger = get_logger("mensa.layout_client")

    @property
    def render_url(self) -> str:
        return f"{self.base_url}{self.render_path}"

    async def render_layout(self, mensa: Mensa) -> RenderedLayout:
        """Render the layout svg for a mensa."""
        payload = build_render_payload(mensa)
        self.logger.debug(
            "Layout render payload built",
            mensa_id=str(mensa.mensa_id),
            tables=len(payload["tables"]),
            state=RenderState.IDLE.value
        )
        start_time = time.time()

        async def _request() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    self.render_url,
                    json=payload,
                    headers={"Accept": SVG_MEDIA_TYPE}
                )
            response.raise_for_status()
            return response

        self.logger.debug(
            "Layout render requested",
            mensa_id=str(mensa.mensa_id),
            url=self.render_url,
            state=RenderState.SENT.value
        )

        try:
            response = await asyncio.wait_for(_request(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            self._fail(mensa, start_time, "timeout", timeout_seconds=self.timeout_seconds)
            raise RenderUnavailableError()
        except httpx.HTTPStatusError as e:
            self._fail(mensa, start_time, "bad_status", status_code=e.response.status_code)
            raise RenderUnavailableError()
        except httpx.HTTPError as e:
            self._fail(mensa, start_time, "transport", error=str(e))
            raise RenderUnavailableError()

        body = response.text
        if not body:
            self._fail(mensa, start_time, "empty_body")
            raise RenderUnavailableError()

        duration = time.time() - start_time
        self.logger.debug(
            "Layout rendered",
            mensa_id=str(mensa.mensa_id),
            state=RenderState.DELIVERED.value,
            bytes=len(body),
            duration_ms=round(duration * 1000, 2)
        )
        if self.metrics:
            self.metrics.record_layout_render(RenderState.DELIVERED.value, duration)

        return RenderedLayout(content=body, media_type=SVG_MEDIA_TYPE)

    def _fail(self, mensa: Mensa, start_time: float, reason: str, **fields) -> None:
        duration = time.time() - start_time
        self.logger.error(
            "microservices call to render layout svg failed",
            mensa_id=str(mensa.mensa_id),
            url=self.render_url,
            state=RenderState.FAILED.value,
            reason=reason,
            duration_ms=round(duration * 1000, 2),
            **fields
        )
        if self.metrics:
            self.metrics.record_layout_render(RenderState.FAILED.value, duration)
