"""Pydantic schemas for project reads."""

from datetime import datetime

from pydantic import BaseModel


class ProjectOut(BaseModel):
    id: str
    name: str
    status: str
    country: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
