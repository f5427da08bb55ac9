"""Custom exceptions for the drop lifecycle."""


class FileDropError(Exception):
    """Base exception for the drop lifecycle."""
    pass


class DuplicateTokenError(FileDropError):
    """Exception raised when a token is registered twice."""
    pass


class UnknownTokenError(FileDropError):
    """Exception raised when a token is not in the registry."""
    pass


class EntryStateError(FileDropError):
    """Exception raised when an entry is not in the state an operation needs."""
    pass


class StorageIOError(FileDropError):
    """Exception raised when slot directory or file operations fail."""
    pass
