"""Drop API data models."""

from pydantic import BaseModel, Field


class CreateSlotRequest(BaseModel):
    """Request model for the chat command trigger."""

    room: str = Field(..., min_length=1)
    requester: str = Field(..., min_length=1)


class CreateSlotResponse(BaseModel):
    """Response model for a newly issued upload slot."""

    token: str
    upload_url: str


class StorageUsageResponse(BaseModel):
    """Response model for registry occupancy."""

    pending_entries: int
    occupied_entries: int
    committed_bytes: int
    reserved_bytes: int
    max_storage_bytes: int
