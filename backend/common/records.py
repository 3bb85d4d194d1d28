from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TaskRecord(BaseModel):
    """A stored row of the ``tasks`` table."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    user_identifier: str
    title: str
    description: Optional[str] = None
    completed: bool = False
    created_at: datetime
    updated_at: datetime


class TaskInsert(BaseModel):
    user_identifier: str
    title: str
    description: Optional[str] = None
    completed: bool = False


class TaskUpdate(BaseModel):
    """Partial update. Only explicitly set fields reach the store."""

    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
