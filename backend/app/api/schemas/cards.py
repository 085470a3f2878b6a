"""Schemas for the markdown card proxy."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CardFetchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    card_url: Optional[str] = Field(default=None, alias="cardUrl")


class CardFetchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    frontmatter: Dict[str, Any]
    content: str
    base_url: str = Field(..., serialization_alias="baseUrl")
