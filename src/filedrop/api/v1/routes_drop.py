"""Upload and view routes for drop slots.

Handlers are plain functions so FastAPI runs them in its threadpool;
file transfers block and must not stall the event loop.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, Depends, File, Request, UploadFile
from fastapi.responses import FileResponse, HTMLResponse, PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from filedrop.api.dependencies import get_lifecycle, get_notifier, get_settings
from filedrop.chat.links import upload_action, view_url
from filedrop.chat.notifier import ChatNotifier
from filedrop.core.config import Settings
from filedrop.core.logging import token_context
from filedrop.lifecycle.orchestrator import AdmissionStatus, FileDropLifecycle
from filedrop.storage.local import LocalSlotStorage
from filedrop.ui.formatting import format_file_size

UI_DIR = Path(__file__).resolve().parents[2] / "ui"
STATIC_DIR = UI_DIR / "static"
NOT_FOUND_PAGE = STATIC_DIR / "404.html"

ui_router = APIRouter()
templates = Jinja2Templates(directory=str(UI_DIR / "templates"))
logger = logging.getLogger(__name__)


def not_found_page() -> FileResponse:
    return FileResponse(NOT_FOUND_PAGE, status_code=404, media_type="text/html")


@ui_router.get("/", response_class=FileResponse)
def index_page() -> FileResponse:
    """Serve the landing page."""
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


@ui_router.get("/request/{token}/{username}/{room}", response_class=HTMLResponse)
def upload_form(
    request: Request,
    token: str,
    username: str,
    room: str,
    lifecycle: FileDropLifecycle = Depends(get_lifecycle),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Render the upload form for a usable token."""
    token_context.set(token)
    if not lifecycle.is_usable(token):
        return not_found_page()

    return templates.TemplateResponse(
        request,
        "file-input.html",
        {
            "upload_action": upload_action(token, username, room),
            "username": username,
            "room": room,
            "max_file_size": format_file_size(settings.MAX_FILE_SIZE_BYTES),
        },
    )


@ui_router.post("/upload/{token}/{username}/{room}")
def upload_file(
    token: str,
    username: str,
    room: str,
    background_tasks: BackgroundTasks,
    filename: UploadFile = File(...),
    lifecycle: FileDropLifecycle = Depends(get_lifecycle),
    notifier: ChatNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Accept the single upload a token allows."""
    token_context.set(token)
    if not lifecycle.is_usable(token):
        return not_found_page()

    # Validate file size
    filename.file.seek(0, 2)
    size_bytes = filename.file.tell()
    filename.file.seek(0)

    if size_bytes > settings.MAX_FILE_SIZE_BYTES:
        logger.warning(
            "Upload rejected: file too large",
            extra={"size_bytes": size_bytes, "max_file_size_bytes": settings.MAX_FILE_SIZE_BYTES},
        )
        return PlainTextResponse("File too large!", status_code=413)

    file_name = LocalSlotStorage.sanitize_filename(filename.filename or "unnamed")

    status = lifecycle.admit_upload(
        token,
        file_name,
        size_bytes,
        lambda target: LocalSlotStorage.write_file(target, filename.file),
    )

    if status == AdmissionStatus.NOT_FOUND:
        return not_found_page()
    if status == AdmissionStatus.EMPTY_FILE:
        return PlainTextResponse("Empty file", status_code=400)
    if status == AdmissionStatus.QUOTA_EXCEEDED:
        return RedirectResponse("/static/storage-full.html", status_code=303)
    if status == AdmissionStatus.STORAGE_FAILURE:
        return PlainTextResponse("Unable to save file", status_code=500)

    background_tasks.add_task(
        notifier.announce_upload,
        room,
        username,
        view_url(settings.web_host, token, file_name),
    )
    return RedirectResponse("/static/upload-success.html", status_code=303)


@ui_router.get("/view/{token}/{filename}")
def view_file(
    token: str,
    filename: str,
    lifecycle: FileDropLifecycle = Depends(get_lifecycle),
) -> Response:
    """Serve a stored file. The filename segment is display-only."""
    token_context.set(token)
    path = lifecycle.resolve_file(token)
    if path is None or not path.is_file():
        return not_found_page()
    return FileResponse(path)
