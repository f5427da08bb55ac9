"""Chat integration: slot links and upload announcements."""

from filedrop.chat.links import strip_room_prefix, upload_action, upload_url, view_url
from filedrop.chat.notifier import ChatNotifier

__all__ = [
    "ChatNotifier",
    "strip_room_prefix",
    "upload_action",
    "upload_url",
    "view_url",
]
