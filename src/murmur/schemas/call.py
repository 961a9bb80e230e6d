"""Call history Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CallHistoryCreate(BaseModel):
    """Schema for recording a concluded call."""

    receiver_id: str = Field(..., alias="receiverId", min_length=1)
    type: Literal["voice", "video"] = Field("video", description="Call medium")
    status: Literal["completed", "missed", "rejected", "cancelled"]
    duration: int | None = Field(None, ge=0, description="Call length in seconds")

    model_config = ConfigDict(populate_by_name=True)
