from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from ..services.todo_svc import Task, TodoService

router = APIRouter(prefix="/v1/todo")


class TodoBody(BaseModel):
    # int64 fields arrive as JSON strings from protobuf-style clients; both forms are accepted
    id: int = 0
    title: Optional[str] = None
    description: Optional[str] = None
    reminder: Optional[str] = None

    def to_task(self, todo_id: int | None = None) -> Task:
        return Task(
            id=self.id if todo_id is None else todo_id,
            title=self.title or "",
            description=self.description or "",
            reminder=self.reminder,
        )


class TodoRequest(BaseModel):
    # null is the protobuf default, same as an empty version
    api: Optional[str] = None
    todo: Optional[TodoBody] = None

    def to_task(self, todo_id: int | None = None) -> Task:
        return (self.todo or TodoBody()).to_task(todo_id)


def get_service(request: Request) -> TodoService:
    return request.app.state.todo_service


@router.post("")
def api_todo_create(body: TodoRequest, svc: TodoService = Depends(get_service)):
    res = svc.create(body.to_task(), api=body.api)
    return {"api": res.api, "id": str(res.id)}


# registered before /{todo_id} so "all" is never taken for an id
@router.get("/all")
def api_todo_read_all(api: str = "", svc: TodoService = Depends(get_service)):
    res = svc.read_all(api=api)
    return {"api": res.api, "todos": [t.to_dict() for t in res.todos]}


@router.get("/{todo_id}")
def api_todo_read(todo_id: int, api: str = "", svc: TodoService = Depends(get_service)):
    res = svc.read(todo_id, api=api)
    return {"api": res.api, "todo": res.todo.to_dict()}


@router.api_route("/{todo_id}", methods=["PUT", "PATCH"])
def api_todo_update(todo_id: int, body: TodoRequest, svc: TodoService = Depends(get_service)):
    """The id in the path names the row; an id inside the body is ignored."""
    res = svc.update(body.to_task(todo_id=todo_id), api=body.api)
    return {"api": res.api, "updated": str(res.updated)}


@router.delete("/{todo_id}")
def api_todo_delete(todo_id: int, api: str = "", svc: TodoService = Depends(get_service)):
    res = svc.delete(todo_id, api=api)
    return {"api": res.api, "deleted": str(res.deleted)}
