import uuid
import logging
from contextlib import asynccontextmanager
from typing import Optional, Dict, Any, Tuple

from fastapi import FastAPI, Depends, HTTPException, status, Request
from fastapi.responses import JSONResponse

from common.config import settings
from common.records import TaskInsert
from common.store import TaskStore, TaskStoreError, build_task_store
from common.automation import (
    AutomationClient, AutomationResponseError, build_automation_client, has_trigger_phrase
)
from api.schemas import ChatReply, TaskCreateResponse, ErrorResponse, ReadyResponse

# --- Chat replies ---
TRIGGER_HINT_REPLY = (
    'Use #to-do list in your message to create a task. '
    'For example: "I need to #to-do list buy groceries"'
)
DEFAULT_SUCCESS_REPLY = "Task processed successfully."
NOT_CONFIGURED_REPLY = "Sorry, the automation service is not configured. Please contact support."
PROCESSING_ERROR_REPLY = "Sorry, I encountered an error processing your request. Please try again."
GENERIC_ERROR_REPLY = "Sorry, I encountered an error. Please try again later."


def _text_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _normalize_automation_reply(data: Any) -> ChatReply:
    if not isinstance(data, dict):
        raise ValueError(f"Automation webhook returned {type(data).__name__}, expected an object")
    title = _text_or_none(data.get("title"))
    steps = data.get("steps")
    return ChatReply(
        reply=_text_or_none(data.get("reply")) or DEFAULT_SUCCESS_REPLY,
        task_created=data.get("taskCreated") is True,
        title=title,
        enhanced_title=_text_or_none(data.get("enhanced_title")) or title,
        steps=steps if isinstance(steps, list) else None,
    )


def _chat_failure(error: str, reply: str) -> JSONResponse:
    body = ChatReply(error=error, reply=reply, task_created=False).to_body()
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=ErrorResponse(error=error).model_dump(exclude_none=True))


def _parse_task_body(body: Dict[str, Any]) -> Tuple[Optional[TaskInsert], Optional[str]]:
    user_identifier = body.get("user_identifier")
    if not user_identifier or not isinstance(user_identifier, str):
        return None, "User identifier is required"
    title = body.get("title")
    if not isinstance(title, str) or not title.strip():
        return None, "Title is required"
    description = body.get("description")
    if description is not None and not isinstance(description, str):
        return None, "Description must be a string"
    completed = body.get("completed")
    if completed is not None and not isinstance(completed, bool):
        return None, "Completed must be a boolean"
    return TaskInsert(
        user_identifier=user_identifier,
        title=title.strip(),
        description=description or None,
        completed=bool(completed),
    ), None


async def _read_json_object(request: Request) -> Dict[str, Any]:
    body = await request.json()
    return body if isinstance(body, dict) else {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.task_store = build_task_store(settings, server=True)
    app.state.automation_client = build_automation_client(settings)
    try:
        yield
    finally:
        for resource in (app.state.task_store, app.state.automation_client):
            if resource is not None:
                await resource.aclose()


logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)
app = FastAPI(title="To-Do Chat API", lifespan=lifespan)

# --- Middleware & Dependencies ---

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response

def get_task_store(request: Request) -> Optional[TaskStore]:
    return getattr(request.app.state, "task_store", None)

def get_automation_client(request: Request) -> Optional[AutomationClient]:
    return getattr(request.app.state, "automation_client", None)


@app.get("/health/live")
async def health_live():
    return {"status": "ok"}

@app.get("/health/ready", response_model=ReadyResponse)
async def health_ready(
    store: Optional[TaskStore] = Depends(get_task_store),
    automation: Optional[AutomationClient] = Depends(get_automation_client),
):
    if store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Task store not configured")
    return ReadyResponse(status="ready", task_store=True, automation=automation is not None)

# --- Chat ---

@app.post("/api/chat")
async def chat(request: Request, automation: Optional[AutomationClient] = Depends(get_automation_client)):
    request_id = request.state.request_id
    try:
        body = await _read_json_object(request)
        message = body.get("message")
        user_identifier = body.get("user_identifier")

        if not message or not isinstance(message, str):
            return _bad_request("Message is required")
        if not user_identifier or not isinstance(user_identifier, str):
            return _bad_request("User identifier is required")

        if not has_trigger_phrase(message):
            return ChatReply(reply=TRIGGER_HINT_REPLY, task_created=False).to_body()

        if automation is None:
            logger.error("Automation webhook URL not configured (request_id=%s)", request_id)
            return _chat_failure("Automation webhook URL not configured", NOT_CONFIGURED_REPLY)

        try:
            data = await automation.submit(message, user_identifier)
        except AutomationResponseError as e:
            logger.error("Automation webhook error (request_id=%s, status=%s): %s", request_id, e.status_code, e.body)
            return _chat_failure("Failed to process request with automation service", PROCESSING_ERROR_REPLY)

        return _normalize_automation_reply(data).to_body()
    except Exception:
        logger.exception("Chat API error (request_id=%s)", request_id)
        return _chat_failure("Internal server error", GENERIC_ERROR_REPLY)

# --- Tasks ---

@app.post("/api/tasks")
async def create_task(request: Request, store: Optional[TaskStore] = Depends(get_task_store)):
    request_id = request.state.request_id
    try:
        payload, error = _parse_task_body(await _read_json_object(request))
        if error:
            return _bad_request(error)

        if store is None:
            logger.error("Task store not configured (request_id=%s)", request_id)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=ErrorResponse(error="Task store not configured").model_dump(exclude_none=True),
            )

        try:
            task = await store.create_task(payload)
        except TaskStoreError as e:
            logger.error("Task store error (request_id=%s): %s", request_id, e)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=ErrorResponse(error="Failed to create task", details=str(e)).model_dump(exclude_none=True),
            )

        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content=TaskCreateResponse(task=task).model_dump(mode="json"),
        )
    except Exception:
        logger.exception("Task creation error (request_id=%s)", request_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Internal server error").model_dump(exclude_none=True),
        )
