# app/db/models.py
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import date, datetime, timezone
from enum import Enum


class TodoStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TodoPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Todo(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    status: TodoStatus = Field(default=TodoStatus.TODO, index=True)
    priority: TodoPriority = Field(default=TodoPriority.MEDIUM, index=True)
    due_date: Optional[date] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
