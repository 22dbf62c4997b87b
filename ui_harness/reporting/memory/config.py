"""Configuration for the in-memory report sink."""

from pydantic import BaseModel


class MemorySinkConfig(BaseModel):
    """Configuration for the in-memory report sink."""

    max_attachments: int | None = None
