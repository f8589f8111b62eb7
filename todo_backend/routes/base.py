from fastapi import APIRouter

from ..services.todo_svc import API_VERSION

APP_NAME = "todo-service-api"
APP_VERSION = "0.1.0"

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/version")
def version():
    return {"app": APP_NAME, "version": APP_VERSION, "api": API_VERSION}
