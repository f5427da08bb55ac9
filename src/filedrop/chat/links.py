"""Link building for chat messages."""

from urllib.parse import quote

DISPLAY_NAME_CHARS = 20


def strip_room_prefix(room: str) -> str:
    """Drop the leading '#' chat rooms carry so the name fits in a URL path."""
    return room[1:] if room.startswith("#") else room


def upload_url(web_host: str, token: str, requester: str, room: str) -> str:
    """URL of the upload form for a slot."""
    return (
        f"{web_host.rstrip('/')}/request/{token}/"
        f"{quote(requester, safe='')}/{quote(strip_room_prefix(room), safe='')}"
    )


def upload_action(token: str, requester: str, room: str) -> str:
    """Form action path the upload page posts to."""
    return "/upload/" + "/".join(quote(part, safe="") for part in (token, requester, room))


def view_url(web_host: str, token: str, file_name: str) -> str:
    """URL of a stored file.

    Only the last 20 characters of the name go into the path; the view
    route looks the real name up by token.
    """
    display_name = file_name[-DISPLAY_NAME_CHARS:]
    return f"{web_host.rstrip('/')}/view/{token}/{quote(display_name, safe='')}"
