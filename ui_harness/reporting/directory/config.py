"""Configuration for the directory report sink."""

from pathlib import Path

from pydantic import BaseModel


class DirectorySinkConfig(BaseModel):
    """Configuration for the directory report sink."""

    path: Path = Path("target/attachments")
