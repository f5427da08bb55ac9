"""Slot API routes used by the chat command trigger."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from filedrop.api.dependencies import (
    get_lifecycle,
    get_notifier,
    get_settings,
    verify_command_token,
)
from filedrop.chat.links import upload_url
from filedrop.chat.notifier import ChatNotifier
from filedrop.core.config import Settings
from filedrop.lifecycle.exceptions import StorageIOError
from filedrop.lifecycle.orchestrator import FileDropLifecycle
from filedrop.models.drop import CreateSlotRequest, CreateSlotResponse, StorageUsageResponse

router = APIRouter(prefix="/api/v1", tags=["slots"])
logger = logging.getLogger(__name__)


@router.post(
    "/slots",
    response_model=CreateSlotResponse,
    status_code=201,
    dependencies=[Depends(verify_command_token)],
)
def create_slot(
    body: CreateSlotRequest,
    background_tasks: BackgroundTasks,
    lifecycle: FileDropLifecycle = Depends(get_lifecycle),
    notifier: ChatNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> CreateSlotResponse:
    """Issue an upload slot and DM its link to the requester."""
    try:
        token = lifecycle.create_upload_slot(body.room, body.requester)
    except StorageIOError as e:
        logger.error(f"Failed to create upload slot: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create upload slot")

    link = upload_url(settings.web_host, token, body.requester, body.room)
    background_tasks.add_task(notifier.send_upload_link, body.room, body.requester, link)

    return CreateSlotResponse(token=token, upload_url=link)


@router.get("/usage", response_model=StorageUsageResponse)
def storage_usage(
    lifecycle: FileDropLifecycle = Depends(get_lifecycle),
) -> StorageUsageResponse:
    """Report registry occupancy and quota use."""
    usage = lifecycle.usage()
    return StorageUsageResponse(
        pending_entries=usage.pending_entries,
        occupied_entries=usage.occupied_entries,
        committed_bytes=usage.committed_bytes,
        reserved_bytes=usage.reserved_bytes,
        max_storage_bytes=usage.max_storage_bytes,
    )
