from __future__ import annotations

import logging
import uuid
from typing import Dict, Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from config import UPLOAD_PATH, ProxySettings
from models import ProxyErrorResponse, UploadStubResponse

router = APIRouter()

logger = logging.getLogger(__name__)

BACKEND_PATH = "/process-file"
_PASSTHROUGH_HEADERS = ("content-type", "content-length")


def _backend_url(proxy: ProxySettings) -> str:
    return (proxy.api_base or "").rstrip("/") + BACKEND_PATH


def _forward_headers(request: Request, proxy: ProxySettings) -> Dict[str, str]:
    headers = {
        name: request.headers[name]
        for name in _PASSTHROUGH_HEADERS
        if name in request.headers
    }
    if proxy.api_key:
        headers["X-API-Key"] = proxy.api_key
    return headers


def _error(error: str, exc: Exception) -> JSONResponse:
    body = ProxyErrorResponse(error=error, detail=str(exc) or type(exc).__name__)
    return JSONResponse(status_code=500, content=body.model_dump())


def _client(proxy: ProxySettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=proxy.proxy_timeout)


async def _forward(request: Request, proxy: ProxySettings) -> Response:
    """Передать тело запроса бэкенду без изменений и вернуть его ответ как есть."""
    url = _backend_url(proxy)
    async with _client(proxy) as client:
        backend = await client.post(
            url,
            content=request.stream(),
            headers=_forward_headers(request, proxy),
        )
    logger.info("Backend %s answered %s", url, backend.status_code)
    return Response(
        content=backend.content,
        status_code=backend.status_code,
        media_type=backend.headers.get("content-type"),
    )


async def _stub(request: Request) -> Response:
    """Ответить успехом, ничего не пересылая (бэкенд ещё не подключён)."""
    form = await request.form()
    try:
        filename: Optional[str] = None
        for item in form.getlist("files"):
            filename = getattr(item, "filename", None)
            if filename:
                break
    finally:
        await form.close()
    logger.warning("Upload proxy is in stub mode; %s was not forwarded", filename)
    body = UploadStubResponse(
        file_id=str(uuid.uuid4()),
        filename=filename,
        message="File received (stub mode, not forwarded to the backend)",
    )
    return JSONResponse(content=body.model_dump())


@router.post(UPLOAD_PATH)
async def upload_proxy(request: Request):
    """Прокси загрузки к внешнему API обработки документов."""
    from .. import server

    proxy = ProxySettings()
    try:
        if server.config.proxy_mode == "stub":
            return await _stub(request)
        return await _forward(request, proxy)
    except httpx.HTTPError as exc:
        logger.exception("Upload proxy could not reach the backend")
        return _error("Backend request failed", exc)
    except Exception as exc:
        logger.exception("Upload proxy failed")
        return _error("Upload proxy failed", exc)


@router.api_route(UPLOAD_PATH, methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def upload_method_not_allowed():
    return Response(status_code=405)
