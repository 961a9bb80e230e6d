"""Direct message-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for sending a direct message over HTTP."""

    receiver_id: str = Field(..., alias="receiverId", min_length=1, description="Recipient user id")
    content: str | None = Field(None, description="Text content")
    message_type: Literal["text", "image", "video", "gift"] = Field(
        "text", alias="messageType", description="Kind of message"
    )
    image: str | None = Field(None, description="Stored image reference")
    video: str | None = Field(None, description="Stored video reference")

    model_config = ConfigDict(populate_by_name=True)
