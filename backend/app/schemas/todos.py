# app/schemas/todos.py
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.db.models import TodoPriority, TodoStatus


class TodoRequest(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: TodoStatus = TodoStatus.TODO
    priority: TodoPriority = TodoPriority.MEDIUM
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("due_date")
    @classmethod
    def due_date_not_past(cls, v):
        if v is not None and v < date.today():
            raise ValueError("Due date cannot be in the past")
        return v


class TodoResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TodoStatus
    priority: TodoPriority
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TodoSearchCriteria(BaseModel):
    keyword: Optional[str] = None
    status: Optional[TodoStatus] = None
    priority: Optional[TodoPriority] = None
    due_date_from: Optional[date] = None
    due_date_to: Optional[date] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.due_date_from and self.due_date_to and self.due_date_from > self.due_date_to:
            raise ValueError("due_date_from must not be after due_date_to")
        return self


class TodoPage(BaseModel):
    items: List[TodoResponse]
    total: int
    page: int
    limit: int
