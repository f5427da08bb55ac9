"""Shared FastAPI dependencies."""

import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request

from filedrop.chat.notifier import ChatNotifier
from filedrop.core.config import Settings
from filedrop.lifecycle.orchestrator import FileDropLifecycle


def get_lifecycle(request: Request) -> FileDropLifecycle:
    """Lifecycle instance owned by the running application."""
    return request.app.state.lifecycle


def get_notifier(request: Request) -> ChatNotifier:
    """Chat notifier owned by the running application."""
    return request.app.state.notifier


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def verify_command_token(
    request: Request,
    x_command_token: Optional[str] = Header(default=None),
) -> None:
    """Reject slot requests without the shared command token, if one is configured."""
    expected = get_settings(request).COMMAND_TOKEN
    if not expected:
        return
    if not x_command_token or not secrets.compare_digest(x_command_token, expected):
        raise HTTPException(status_code=403, detail="Invalid command token")
