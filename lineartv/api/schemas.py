"""Pydantic schemas for API requests"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ExtensionRequest(BaseModel):
    """Block or day extension. Exactly one of ``blocks`` and ``days`` is set."""

    blocks: Optional[int] = Field(default=None, description="Template blocks to append")
    days: Optional[float] = Field(default=None, description="Days to extend the timeline by")

    @model_validator(mode="after")
    def check_mode(self) -> "ExtensionRequest":
        if (self.blocks is None) == (self.days is None):
            raise ValueError("Set exactly one of blocks or days")
        return self


class PreviewRequest(BaseModel):
    """Extension preview. Both fields are optional."""

    blocks: Optional[int] = None
    days: Optional[float] = None


class RollForwardRequest(BaseModel):
    """Copy programs starting within a window, shifted by a number of days."""

    window_start: datetime
    window_end: datetime
    add_days: float = 7
