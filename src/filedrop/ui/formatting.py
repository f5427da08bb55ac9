"""Presentation helpers for the upload pages."""

KIB = 1024
MIB = KIB * 1024
GIB = MIB * 1024


def format_file_size(size_bytes: int) -> str:
    """Render a byte count in whole binary units, rounded down."""
    if size_bytes >= GIB:
        return f"{size_bytes // GIB} GiB"
    if size_bytes >= MIB:
        return f"{size_bytes // MIB} MiB"
    if size_bytes >= KIB:
        return f"{size_bytes // KIB} KiB"
    return f"{size_bytes} B"
