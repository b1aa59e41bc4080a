"""
Adapters package for the Mensa Service.

Contains HTTP client wrappers for external dependencies. Currently the
layout rendering microservice, which turns a mensa's geometry and tables
into an svg document.
"""

from .layout_client import LayoutRenderClient, RenderState, build_render_payload

__all__ = [
    "LayoutRenderClient",
    "RenderState",
    "build_render_payload",
]
