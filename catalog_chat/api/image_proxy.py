"""
Image proxy: streams external product images through this origin.

Avoids mixed-content and hotlinking problems in the chat widget and keeps
upstream timeouts and errors in one place.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])

PROXY_PATH = "/proxy-image"
DEFAULT_TIMEOUT_SECONDS = 60.0


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared client created in the app lifespan."""
    return request.app.state.http_client


def get_proxy_timeout(request: Request) -> float:
    cfg = getattr(request.app.state, "config", None)
    return cfg.proxy.timeout_seconds if cfg is not None else DEFAULT_TIMEOUT_SECONDS


@router.get(PROXY_PATH)
async def proxy_image(
    url: Optional[str] = Query(default=None),
    client: httpx.AsyncClient = Depends(get_http_client),
    timeout: float = Depends(get_proxy_timeout),
):
    if not url:
        return PlainTextResponse("Missing image URL", status_code=400)

    try:
        upstream_request = client.build_request("GET", url, timeout=timeout)
        upstream = await client.send(upstream_request, stream=True, follow_redirects=True)
    except httpx.TimeoutException:
        logger.error("Timeout occurred while fetching image: %s", url)
        return PlainTextResponse("Timeout fetching image", status_code=504)
    except Exception as e:
        logger.error("Error proxying image %s: %s", url, e)
        return PlainTextResponse("Error fetching image", status_code=500)

    if upstream.is_error:
        logger.error("Error proxying image %s: upstream status %s", url, upstream.status_code)
        await upstream.aclose()
        return PlainTextResponse("Error fetching image", status_code=upstream.status_code)

    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type=upstream.headers.get("content-type"),
        background=BackgroundTask(upstream.aclose),
    )
