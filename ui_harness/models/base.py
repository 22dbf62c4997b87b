"""Base model configuration for all data structures."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Frozen model that accepts both camelCase aliases and field names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
