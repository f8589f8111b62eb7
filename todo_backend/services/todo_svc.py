"""
Todo service: the five operations behind both the HTTP routes and any other
transport.

Every operation follows the same shape: API-version gate, input validation,
one connection from the pool, one statement (plus its last-insert id or
affected-row count on the same connection), then mapping the outcome to a
response or a typed error.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any

from ..db import Database
from ..errors import InvalidArgumentError, NotFoundError, UnimplementedError, UnknownError
from ..repository import todo_repo
from . import timestamps
from .timestamps import TimestampError, WireValue

# version of the API provided by this service
API_VERSION = "v1"

_INT64_MIN, _INT64_MAX = -(2 ** 63), 2 ** 63 - 1


@dataclass
class Task:
    id: int = 0
    title: str = ""
    description: str = ""
    reminder: WireValue = None

    def to_dict(self) -> dict[str, Any]:
        # protobuf JSON mapping renders int64 as a string
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "reminder": self.reminder,
        }


@dataclass
class CreateResponse:
    api: str
    id: int


@dataclass
class ReadResponse:
    api: str
    todo: Task


@dataclass
class UpdateResponse:
    api: str
    updated: int


@dataclass
class DeleteResponse:
    api: str
    deleted: int


@dataclass
class ReadAllResponse:
    api: str
    todos: list[Task] = field(default_factory=list)


def check_api(api: str | None):
    """Empty version means "use the current one"; anything else must match exactly."""
    if api and api != API_VERSION:
        raise UnimplementedError(
            f"Unsupported API version: service implements API version '{API_VERSION}', "
            f"but asked for '{api}'"
        )


def _check_id(todo_id: int) -> int:
    if isinstance(todo_id, bool) or not isinstance(todo_id, int):
        raise InvalidArgumentError(f"ID must be an integer, got {todo_id!r}")
    if not _INT64_MIN <= todo_id <= _INT64_MAX:
        raise InvalidArgumentError(f"ID='{todo_id}' is out of the 64-bit range")
    return todo_id


def _text(value: str | None, name: str, limit: int) -> str:
    value = value or ""
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{name} field must be text")
    if len(value) > limit:
        raise InvalidArgumentError(f"{name} field is longer than {limit} characters")
    return value


def _storage_reminder(value: WireValue) -> str | None:
    try:
        return timestamps.to_storage(value)
    except TimestampError as e:
        raise InvalidArgumentError.wrap("Reminder field has invalid format", e) from e


def _row_to_task(row: sqlite3.Row) -> Task:
    try:
        reminder = timestamps.from_storage(row["reminder"])
    except TimestampError as e:
        raise UnknownError.wrap("reminder field has invalid format", e) from e
    return Task(
        id=int(row["id"]),
        title=row["title"] or "",
        description=row["description"] or "",
        reminder=reminder,
    )


class TodoService:
    def __init__(self, db: Database, logger: logging.Logger):
        self.db = db
        self.log = logger

    def ensure_schema(self):
        with self.db.connection() as conn:
            try:
                todo_repo.ensure_schema(conn)
            except sqlite3.Error as e:
                raise UnknownError.wrap("Failed to create todo table", e) from e

    def create(self, todo: Task, api: str | None = "") -> CreateResponse:
        check_api(api)
        title = _text(todo.title, "Title", todo_repo.TITLE_MAX)
        description = _text(todo.description, "Description", todo_repo.DESCRIPTION_MAX)
        reminder = _storage_reminder(todo.reminder)

        with self.db.connection() as conn:
            try:
                new_id = todo_repo.insert(conn, title, description, reminder)
            except sqlite3.Error as e:
                raise UnknownError.wrap("Failed to insert into todo", e) from e

        self.log.debug("todo created", extra={"todo-id": new_id})
        return CreateResponse(api=API_VERSION, id=new_id)

    def read(self, todo_id: int, api: str | None = "") -> ReadResponse:
        check_api(api)
        _check_id(todo_id)

        with self.db.connection() as conn:
            try:
                rows = todo_repo.select_by_id(conn, todo_id)
            except sqlite3.Error as e:
                raise UnknownError.wrap("Failed to select from todo", e) from e

        if not rows:
            raise NotFoundError(f"Todo with ID='{todo_id}' is not found")
        if len(rows) > 1:
            # id is the primary key; reaching this means the table is corrupt
            self.log.error("duplicate todo id", extra={"todo-id": todo_id, "rows": len(rows)})
            raise UnknownError(f"Found multiple Todo rows with ID='{todo_id}'")

        return ReadResponse(api=API_VERSION, todo=_row_to_task(rows[0]))

    def update(self, todo: Task, api: str | None = "") -> UpdateResponse:
        """Rows matching no id are reported as ``updated=0``, not as NotFound."""
        check_api(api)
        _check_id(todo.id)
        title = _text(todo.title, "Title", todo_repo.TITLE_MAX)
        description = _text(todo.description, "Description", todo_repo.DESCRIPTION_MAX)
        reminder = _storage_reminder(todo.reminder)

        with self.db.connection() as conn:
            try:
                updated = todo_repo.update(conn, todo.id, title, description, reminder)
            except sqlite3.Error as e:
                raise UnknownError.wrap("Failed to update todo", e) from e

        return UpdateResponse(api=API_VERSION, updated=updated)

    def delete(self, todo_id: int, api: str | None = "") -> DeleteResponse:
        check_api(api)
        _check_id(todo_id)

        with self.db.connection() as conn:
            try:
                deleted = todo_repo.delete(conn, todo_id)
            except sqlite3.Error as e:
                raise UnknownError.wrap("Failed to delete todo", e) from e

        if deleted == 0:
            raise NotFoundError(f"Todo with ID='{todo_id}' is not found")
        return DeleteResponse(api=API_VERSION, deleted=deleted)

    def read_all(self, api: str | None = "") -> ReadAllResponse:
        check_api(api)

        with self.db.connection() as conn:
            try:
                rows = todo_repo.select_all(conn)
            except sqlite3.Error as e:
                raise UnknownError.wrap("Failed to select from todo", e) from e

        # one bad row fails the whole call
        return ReadAllResponse(api=API_VERSION, todos=[_row_to_task(r) for r in rows])
