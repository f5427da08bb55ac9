"""HTTP client for posting messages to the chat server."""

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

UPLOAD_LINK_MESSAGE = "Use this link to upload a picture: {url}"


class ChatNotifier:
    """Sends slot links and upload announcements to chat rooms.

    Delivery is fire-and-forget: every public method logs failures and
    returns False instead of raising, so it can run as a background task.
    """

    def __init__(self, api_url: str, token: str = "", timeout: int = 5):
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_url)

    async def send_upload_link(self, room: str, requester: str, upload_url: str) -> bool:
        """DM the upload link to the user who asked for a slot.

        Args:
            room: Room the command came from
            requester: User to DM
            upload_url: Link to the upload form

        Returns:
            True if the message was delivered
        """
        payload = {
            "room": room,
            "dm_to": requester,
            "data": UPLOAD_LINK_MESSAGE.format(url=upload_url),
        }
        return await self._deliver(payload, kind="upload_link")

    async def announce_upload(self, room: str, requester: str, view_url: str) -> bool:
        """Post the uploaded picture to its room as a markdown image.

        Args:
            room: Room name, with or without the leading '#'
            requester: User the message is sent on behalf of
            view_url: Link to the stored file

        Returns:
            True if the message was delivered
        """
        payload = {
            "room": room if room.startswith("#") else f"#{room}",
            "from": requester,
            "data": f"![{view_url} ]({view_url})",
        }
        return await self._deliver(payload, kind="upload_announcement")

    async def _deliver(self, payload: Dict[str, Any], kind: str) -> bool:
        if not self.enabled:
            logger.info(
                "Chat notifications disabled, message dropped",
                extra={"kind": kind, "room": payload.get("room")},
            )
            return False

        try:
            await self._post(payload)
        except httpx.TimeoutException:
            logger.warning(
                "Chat message timeout (non-critical)",
                extra={"kind": kind, "room": payload.get("room"), "timeout": self.timeout},
            )
            return False
        except httpx.HTTPError as e:
            logger.warning(
                "Chat message failed (non-critical)",
                extra={
                    "kind": kind,
                    "room": payload.get("room"),
                    "error": str(e),
                    "status_code": _status_code(e),
                },
            )
            return False

        logger.info(
            "Chat message sent",
            extra={"kind": kind, "room": payload.get("room")},
        )
        return True

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _post(self, payload: Dict[str, Any]) -> None:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(f"{self.api_url}/messages", json=payload, headers=headers)
            response.raise_for_status()


def _status_code(error: httpx.HTTPError) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None
