from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Any, List
from common.records import TaskRecord

class ChatReply(BaseModel):
    """Body of every /api/chat response except input errors.

    Serialize with ``by_alias=True, exclude_unset=True`` so that fields a
    branch never set are omitted rather than sent as null.
    """
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    task_created: bool = Field(False, alias="taskCreated")
    title: Optional[str] = None
    enhanced_title: Optional[str] = None
    steps: Optional[List[Any]] = None
    error: Optional[str] = None

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)

class TaskCreateResponse(BaseModel):
    success: bool = True
    task: TaskRecord

class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None

class ReadyResponse(BaseModel):
    status: str
    task_store: bool
    automation: bool
