from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Priority = Literal["low", "medium", "high"]
Status = Literal["todo", "in-progress", "done"]

PRIORITIES: tuple[str, ...] = ("low", "medium", "high")
STATUSES: tuple[str, ...] = ("todo", "in-progress", "done")


# --- Task schemas ---
# Request bodies are deliberately lenient: enum coercion and "text required"
# are decided by the task store, not by schema validation.


class TaskCreate(BaseModel):
    text: str | None = None
    priority: Any = None
    status: Any = None
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"text": "Buy milk"},
                {"text": "Plan trip", "priority": "high", "status": "in-progress"},
            ]
        },
    )


class TaskUpdate(BaseModel):
    text: str | None = None
    completed: bool | None = None
    priority: Any = None
    status: Any = None
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"completed": True},
                {"status": "done"},
                {"text": "New text", "priority": "medium"},
            ]
        },
    )


class Task(BaseModel):
    id: str
    user_id: str = Field(alias="userId")
    text: str
    completed: bool = False
    priority: Priority = "low"
    status: Status = "todo"
    created_at: str | None = Field(default=None, alias="createdAt")  # absent on some old records

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(BaseModel):
    message: str


# --- User / Auth schemas ---


class RegisterRequest(BaseModel):
    # Presence and length are checked by accounts.register
    username: str | None = None
    email: str | None = None
    password: str | None = None
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [{"username": "alice", "email": "alice@x.com", "password": "secret1"}]
        },
    )


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    model_config = ConfigDict(extra="ignore")


class UserPublic(BaseModel):
    id: str
    username: str
    email: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserPublic
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "message": "Login successful",
                    "token": "<jwt>",
                    "user": {"id": "1760000000000", "username": "alice", "email": "alice@x.com"},
                }
            ]
        }
    )


class TokenClaims(BaseModel):
    """Claims carried by a verified access token."""

    id: str
    username: str
    email: str
    exp: int | None = None
    model_config = ConfigDict(extra="ignore")
