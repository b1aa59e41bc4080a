"""
Unit tests for the layout rendering client.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import httpx
import pytest

from service_mensa.app.adapters.layout_client import LayoutRenderClient, build_render_payload
from service_mensa.app.domain.models import Mensa, Table
from shared.errors import ErrorKind, RenderUnavailableError
from shared.metrics import MetricsCollector

RENDER_URL = "http://layout:8090/render"
SVG = "<svg xmlns=\"http://www.w3.org/2000/svg\"><rect id=\"t1\"/></svg>"


def _response(status_code: int = 200, text: str = SVG) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        text=text,
        request=httpx.Request("POST", RENDER_URL)
    )


class TestBuildRenderPayload:
    """Test cases for the render payload projection."""

    def test_payload_has_exactly_the_layout_fields(self, store):
        """Only id, position, size and tables are sent."""
        mensa = store.mensas.find_all()[0]
        payload = build_render_payload(mensa)

        assert set(payload) == {"id", "x", "y", "width", "height", "tables"}
        assert payload["id"] == str(mensa.mensa_id)
        assert (payload["x"], payload["y"], payload["width"], payload["height"]) == (10, 20, 100, 50)

    def test_tables_pass_through_unchanged(self):
        """Table properties reach the renderer as they are stored."""
        table = Table(
            table_id=UUID("b7c8d9e0-0000-4000-8000-000000000001"),
            properties={"x": 1, "y": 2, "seats": 6, "shape": {"kind": "round", "r": 3}}
        )
        mensa = Mensa(UUID(int=1), "f1", 10, 20, 100, 50, (table,))

        payload = build_render_payload(mensa)

        assert payload["tables"] == [{
            "id": "b7c8d9e0-0000-4000-8000-000000000001",
            "x": 1,
            "y": 2,
            "seats": 6,
            "shape": {"kind": "round", "r": 3},
        }]
        json.dumps(payload)


class TestLayoutRenderClient:
    """Test cases for LayoutRenderClient."""

    @pytest.fixture
    def metrics(self):
        """Metrics collector with the mensa metric set."""
        return MetricsCollector("mensa")

    @pytest.fixture
    def layout_client(self, metrics):
        """Create LayoutRenderClient instance."""
        return LayoutRenderClient("http://layout:8090/", timeout_seconds=0.2, metrics=metrics)

    @pytest.fixture
    def mensa(self, store):
        """Mensa with two tables."""
        return store.mensas.find_all()[0]

    @pytest.mark.asyncio
    async def test_render_success(self, layout_client, mensa, metrics):
        """A non-empty body within the deadline is returned verbatim as svg."""
        with patch('httpx.AsyncClient') as mock_client:
            post = AsyncMock(return_value=_response())
            mock_client.return_value.__aenter__.return_value.post = post

            layout = await layout_client.render_layout(mensa)

        assert layout.content == SVG
        assert layout.media_type == "image/svg+xml"

        post.assert_awaited_once()
        args, kwargs = post.call_args
        assert args[0] == RENDER_URL
        assert kwargs["json"] == build_render_payload(mensa)
        assert kwargs["headers"]["Accept"] == "image/svg+xml"
        assert metrics.get_sample_value("layout_renders_total", {"outcome": "delivered"}) == 1.0

    @pytest.mark.asyncio
    async def test_render_timeout(self, layout_client, mensa, metrics):
        """A renderer slower than the deadline yields RenderUnavailableError."""
        cancelled = asyncio.Event()

        async def slow_post(*args, **kwargs):
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return _response()

        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(side_effect=slow_post)

            with pytest.raises(RenderUnavailableError) as exc_info:
                await layout_client.render_layout(mensa)

        assert exc_info.value.kind == ErrorKind.RENDER_UNAVAILABLE
        assert cancelled.is_set()
        assert metrics.get_sample_value("layout_renders_total", {"outcome": "failed"}) == 1.0

    @pytest.mark.asyncio
    async def test_render_empty_body(self, layout_client, mensa):
        """An empty response body yields RenderUnavailableError."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_response(text="")
            )

            with pytest.raises(RenderUnavailableError):
                await layout_client.render_layout(mensa)

    @pytest.mark.asyncio
    async def test_render_transport_error(self, layout_client, mensa):
        """A connection failure yields RenderUnavailableError."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )

            with pytest.raises(RenderUnavailableError):
                await layout_client.render_layout(mensa)

    @pytest.mark.asyncio
    async def test_render_transport_timeout(self, layout_client, mensa):
        """An httpx timeout yields RenderUnavailableError."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ReadTimeout("Request timeout")
            )

            with pytest.raises(RenderUnavailableError):
                await layout_client.render_layout(mensa)

    @pytest.mark.asyncio
    async def test_render_error_status(self, layout_client, mensa):
        """A 5xx from the renderer yields RenderUnavailableError."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_response(status_code=500, text="boom")
            )

            with pytest.raises(RenderUnavailableError):
                await layout_client.render_layout(mensa)

    @pytest.mark.asyncio
    async def test_failures_are_indistinguishable(self, layout_client, mensa):
        """Every failure cause produces the same error kind, message and details."""
        side_effects = [
            {"side_effect": httpx.ConnectError("Connection refused")},
            {"return_value": _response(text="")},
            {"return_value": _response(status_code=502, text="bad gateway")},
        ]
        errors = []
        for side_effect in side_effects:
            with patch('httpx.AsyncClient') as mock_client:
                mock_client.return_value.__aenter__.return_value.post = AsyncMock(**side_effect)
                with pytest.raises(RenderUnavailableError) as exc_info:
                    await layout_client.render_layout(mensa)
                errors.append(exc_info.value.to_response().model_dump())

        assert errors[0] == errors[1] == errors[2]

    @pytest.mark.asyncio
    async def test_single_attempt(self, layout_client, mensa):
        """The renderer is called once even when it fails."""
        with patch('httpx.AsyncClient') as mock_client:
            post = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
            mock_client.return_value.__aenter__.return_value.post = post

            with pytest.raises(RenderUnavailableError):
                await layout_client.render_layout(mensa)

        assert post.await_count == 1

    @pytest.mark.asyncio
    async def test_render_states_logged_on_success(self, layout_client, mensa):
        """A delivered render logs idle, sent and delivered in order."""
        layout_client.logger = MagicMock()
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=_response())

            await layout_client.render_layout(mensa)

        states = [c.kwargs["state"] for c in layout_client.logger.debug.call_args_list]
        assert states == ["idle", "sent", "delivered"]
        layout_client.logger.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_render_states_logged_on_failure(self, layout_client, mensa):
        """A failed render logs idle and sent, then failed at error level."""
        layout_client.logger = MagicMock()
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )

            with pytest.raises(RenderUnavailableError):
                await layout_client.render_layout(mensa)

        states = [c.kwargs["state"] for c in layout_client.logger.debug.call_args_list]
        assert states == ["idle", "sent"]
        error_call = layout_client.logger.error.call_args
        assert error_call.kwargs["state"] == "failed"
        assert error_call.kwargs["reason"] == "transport"

    def test_default_deadline(self):
        """The default bound is ten seconds."""
        assert LayoutRenderClient("http://layout:8090").timeout_seconds == 10.0
