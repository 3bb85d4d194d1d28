import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from common.config import Settings
from common.models import Base, Task
from common.records import TaskInsert, TaskRecord, TaskUpdate

logger = logging.getLogger(__name__)


class TaskStoreError(Exception):
    """A store-level failure with a human-readable message."""


class TaskStore(Protocol):
    async def list_tasks(self, user_identifier: str) -> List[TaskRecord]: ...

    async def create_task(self, payload: TaskInsert) -> TaskRecord: ...

    async def update_task(self, task_id: str, updates: TaskUpdate) -> TaskRecord: ...

    async def delete_task(self, task_id: str) -> bool: ...

    async def aclose(self) -> None: ...


def _check_insert(payload: TaskInsert) -> Dict[str, Any]:
    if not payload.user_identifier:
        raise TaskStoreError("User identifier is required")
    if not payload.title.strip():
        raise TaskStoreError("Title is required")
    return payload.model_dump()


def _check_update(updates: TaskUpdate) -> Dict[str, Any]:
    changes = updates.changes()
    if not changes:
        raise TaskStoreError("No fields to update")
    if "title" in changes and not (changes["title"] or "").strip():
        raise TaskStoreError("Title is required")
    if "completed" in changes and changes["completed"] is None:
        raise TaskStoreError("Completed must be a boolean")
    return changes


def _to_record(row: Any) -> TaskRecord:
    try:
        return TaskRecord.model_validate(row)
    except ValidationError as e:
        raise TaskStoreError(f"Unexpected task row from store: {e.error_count()} invalid field(s)") from e


class HostedTaskStore:
    """Task store backed by the hosted data service's REST interface.

    Rows live under ``{base_url}/rest/v1/tasks`` and are filtered with
    PostgREST operators (``eq.``). One HTTP client per store instance.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def tasks_url(self) -> str:
        return f"{self.base_url}/rest/v1/tasks"

    def _get_headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
        return f"Task store request failed with status {resp.status_code}"

    async def _request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        try:
            resp = await self._client.request(
                method, self.tasks_url, params=params, json=json, headers=self._get_headers(prefer)
            )
        except httpx.HTTPError as e:
            raise TaskStoreError(f"Task store unreachable: {e}") from e
        if resp.is_error:
            raise TaskStoreError(self._error_message(resp))
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise TaskStoreError("Task store returned invalid JSON") from e

    async def _request_rows(self, method: str, **kwargs: Any) -> List[TaskRecord]:
        payload = await self._request(method, **kwargs)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise TaskStoreError("Unexpected task store response")
        return [_to_record(row) for row in payload]

    async def list_tasks(self, user_identifier: str) -> List[TaskRecord]:
        return await self._request_rows(
            "GET",
            params={
                "select": "*",
                "user_identifier": f"eq.{user_identifier}",
                "order": "created_at.desc",
            },
        )

    async def create_task(self, payload: TaskInsert) -> TaskRecord:
        row = _check_insert(payload)
        rows = await self._request_rows(
            "POST", params={"select": "*"}, json=[row], prefer="return=representation"
        )
        if not rows:
            raise TaskStoreError("Task store returned no row for insert")
        return rows[0]

    async def update_task(self, task_id: str, updates: TaskUpdate) -> TaskRecord:
        changes = _check_update(updates)
        rows = await self._request_rows(
            "PATCH",
            params={"id": f"eq.{task_id}", "select": "*"},
            json=changes,
            prefer="return=representation",
        )
        if not rows:
            raise TaskStoreError("Task not found")
        return rows[0]

    async def delete_task(self, task_id: str) -> bool:
        await self._request("DELETE", params={"id": f"eq.{task_id}"})
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


class SqlTaskStore:
    """The same contract over a SQLAlchemy async engine."""

    def __init__(self, session_factory, engine=None):
        self._session_factory = session_factory
        self._engine = engine

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs: Any) -> "SqlTaskStore":
        engine = create_async_engine(database_url, **engine_kwargs)
        return cls(sessionmaker(engine, class_=AsyncSession, expire_on_commit=False), engine=engine)

    async def create_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("create_schema needs an engine")
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @staticmethod
    def _db_error(e: SQLAlchemyError) -> TaskStoreError:
        orig = getattr(e, "orig", None)
        return TaskStoreError(str(orig) if orig is not None else str(e))

    async def list_tasks(self, user_identifier: str) -> List[TaskRecord]:
        query = select(Task).where(Task.user_identifier == user_identifier).order_by(Task.created_at.desc())
        try:
            async with self._session_factory() as db:
                rows = (await db.execute(query)).scalars().all()
        except SQLAlchemyError as e:
            raise self._db_error(e) from e
        return [_to_record(row) for row in rows]

    async def create_task(self, payload: TaskInsert) -> TaskRecord:
        values = _check_insert(payload)
        now = datetime.now(timezone.utc)
        row = Task(id=str(uuid.uuid4()), created_at=now, updated_at=now, **values)
        try:
            async with self._session_factory() as db:
                db.add(row)
                await db.commit()
        except SQLAlchemyError as e:
            raise self._db_error(e) from e
        return _to_record(row)

    async def update_task(self, task_id: str, updates: TaskUpdate) -> TaskRecord:
        changes = _check_update(updates)
        try:
            async with self._session_factory() as db:
                row = await db.get(Task, task_id)
                if row is None:
                    raise TaskStoreError("Task not found")
                for key, value in changes.items():
                    setattr(row, key, value)
                row.updated_at = datetime.now(timezone.utc)
                await db.commit()
        except SQLAlchemyError as e:
            raise self._db_error(e) from e
        return _to_record(row)

    async def delete_task(self, task_id: str) -> bool:
        try:
            async with self._session_factory() as db:
                await db.execute(delete(Task).where(Task.id == task_id))
                await db.commit()
        except SQLAlchemyError as e:
            raise self._db_error(e) from e
        return True

    async def aclose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()


def build_task_store(cfg: Settings, server: bool = False) -> Optional[TaskStore]:
    """Construct the configured store, or None when its configuration is missing."""
    backend = (cfg.TASK_STORE_BACKEND or "hosted").strip().lower()
    if backend == "sql":
        if not cfg.DATABASE_URL:
            logger.warning("TASK_STORE_BACKEND=sql but DATABASE_URL is not configured.")
            return None
        return SqlTaskStore.from_url(cfg.DATABASE_URL)
    if backend != "hosted":
        logger.error("Unknown TASK_STORE_BACKEND %r", cfg.TASK_STORE_BACKEND)
        return None
    if server:
        url, key = cfg.server_store_url, cfg.server_store_key
    else:
        url = (cfg.TASK_STORE_URL or "").strip() or None
        key = (cfg.TASK_STORE_ANON_KEY or "").strip() or None
    if not url or not key:
        logger.warning("Task store URL/key not configured (server=%s).", server)
        return None
    return HostedTaskStore(url, key, timeout=cfg.TASK_STORE_TIMEOUT_SECONDS)
