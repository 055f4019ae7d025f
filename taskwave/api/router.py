from fastapi import APIRouter

from ..routers import auth as auth_router
from ..routers import tasks as tasks_router

api_router = APIRouter(prefix="/api")

# Endpoints are available at /api/register, /api/login, /api/me and /api/tasks
api_router.include_router(auth_router.router)
api_router.include_router(tasks_router.router)


@api_router.get("/", tags=["auth"])  # lightweight meta endpoint
def api_info():
    return {
        "name": "TaskWave API",
        "docs": "/docs",
        "auth": {
            "register": "/api/register",
            "login": "/api/login",
            "me": "/api/me",
        },
        "tasks": "/api/tasks",
    }
