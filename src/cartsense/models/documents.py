"""Remote document store models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """Schemaless document stored under a slash-separated collection path."""

    id: str
    collection_path: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    def flatten(self) -> dict[str, Any]:
        """Return the document fields merged with its id and creation time."""

        return {**self.data, "id": self.id, "created_at": self.created_at}


__all__ = ["Document"]
