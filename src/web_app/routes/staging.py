from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response

from catalog import InvalidFieldValue, UnknownFieldError, validate_value
from file_handles import stage_upload
from models import FieldUpdate
from services.submission import SubmissionInProgressError
from ..previews import render_thumbnail
from ..renderer import WidgetView
from ..session import AddFiles, RemoveFile, RemoveLast, UpdateField, WidgetSession

router = APIRouter(prefix="/staging")

logger = logging.getLogger(__name__)


def _current_session(request: Request) -> WidgetSession:
    """Найти сессию виджета по cookie."""
    from .. import server

    session_id = request.cookies.get(server.config.session_cookie)
    session = server.sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Unknown upload session")
    return session


def _widget_response(session: WidgetSession) -> HTMLResponse:
    from .. import server

    renderer = server.renderer_for(session)
    view = renderer.build_view(session.store, session.controller)
    return HTMLResponse(renderer.render(view))


@router.post("/files", response_class=HTMLResponse)
async def add_files(request: Request, files: List[UploadFile] = File(...)):
    """Принять выбранные или перетащенные файлы."""
    session = _current_session(request)
    handles = []
    for upload in files:
        handles.append(
            await stage_upload(
                upload, session.staging_dir, limit=session.store.max_size_bytes
            )
        )
    session.dispatch(AddFiles(handles))
    return _widget_response(session)


@router.delete("/files/{file_id}", response_class=HTMLResponse)
async def remove_file(file_id: str, request: Request):
    session = _current_session(request)
    session.dispatch(RemoveFile(file_id))
    return _widget_response(session)


@router.post("/remove-last", response_class=HTMLResponse)
async def remove_last(request: Request):
    """Клавиша Escape: убрать последний добавленный файл."""
    session = _current_session(request)
    session.dispatch(RemoveLast())
    return _widget_response(session)


@router.patch("/files/{file_id}", status_code=204)
async def update_field(file_id: str, update: FieldUpdate, request: Request):
    """Изменить одно поле метаданных без перерисовки списка."""
    session = _current_session(request)
    try:
        validate_value(update.field, update.value)
    except (UnknownFieldError, InvalidFieldValue) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    session.dispatch(UpdateField(file_id, update.field, update.value))
    return Response(status_code=204)


@router.post("/submit", response_class=HTMLResponse)
async def submit(request: Request):
    session = _current_session(request)
    try:
        await session.controller.submit()
    except SubmissionInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _widget_response(session)


@router.get("/state", response_model=WidgetView)
async def state(request: Request):
    """Текущее состояние виджета только для чтения (без ссылок на превью)."""
    from .. import server

    session = _current_session(request)
    return server.renderer_for(session).snapshot(session.store, session.controller)


@router.get("/previews/{token}")
async def preview(token: str, request: Request):
    session = _current_session(request)
    handle = session.previews.consume(token)
    if handle is None:
        logger.debug("Preview token %s is unknown or already used", token)
        raise HTTPException(status_code=404, detail="Preview not found")
    thumbnail = render_thumbnail(handle)
    if thumbnail is None:
        raise HTTPException(status_code=404, detail="Preview not available")
    content, media_type = thumbnail
    return Response(content=content, media_type=media_type)


@router.post("/close", status_code=204)
async def close(request: Request):
    """Страница закрыта или покинута: освободить файлы сессии."""
    from .. import server

    server.sessions.close(request.cookies.get(server.config.session_cookie))
    return Response(status_code=204)
