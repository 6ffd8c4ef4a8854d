# app/services/todos.py
from datetime import date, datetime, timezone
from typing import List

import structlog

from app.core.exceptions import TodoNotFoundError
from app.db.models import Todo, TodoStatus
from app.db.repository import TodoRepository
from app.schemas.todos import TodoRequest, TodoSearchCriteria
from app.services.logging_service import LoggingService, get_logging_service
from app.utils.pagination import Page

logger = structlog.get_logger("app.services.todos")


class TodoService:
    resource_type = "TODO"

    def __init__(self, repository: TodoRepository, logging_service: LoggingService = None):
        self.repository = repository
        self.logging_service = logging_service or get_logging_service()

    def find_all(self, page: int = 1, limit: int = 10) -> Page:
        logger.info("Finding all todos", page=page, limit=limit)
        items = self.repository.find_all(offset=(page - 1) * limit, limit=limit)
        return Page(items=items, total=self.repository.count(), page=page, limit=limit)

    def find_by_id(self, todo_id: int) -> Todo:
        logger.info("Finding todo by id", todo_id=todo_id)
        todo = self.repository.find_by_id(todo_id)
        if todo is None:
            logger.warning("Todo not found", todo_id=todo_id)
            raise TodoNotFoundError(todo_id)
        return todo

    def create(self, request: TodoRequest) -> Todo:
        logger.info("Creating new todo", title=request.title)
        now = datetime.now(timezone.utc)
        todo = Todo(**request.model_dump(), created_at=now, updated_at=now)
        saved = self.repository.save(todo)
        logger.info("Created todo", todo_id=saved.id)
        return saved

    def update(self, todo_id: int, request: TodoRequest) -> Todo:
        logger.info("Updating todo", todo_id=todo_id)
        todo = self.find_by_id(todo_id)
        for key, value in request.model_dump().items():
            setattr(todo, key, value)
        todo.updated_at = datetime.now(timezone.utc)
        updated = self.repository.save(todo)
        logger.info("Updated todo", todo_id=updated.id)
        return updated

    def delete(self, todo_id: int) -> None:
        logger.info("Deleting todo", todo_id=todo_id)
        if not self.repository.exists_by_id(todo_id):
            logger.warning("Attempted to delete non-existent todo", todo_id=todo_id)
            raise TodoNotFoundError(todo_id)
        self.repository.delete_by_id(todo_id)
        logger.info("Deleted todo", todo_id=todo_id)

    def search(self, criteria: TodoSearchCriteria) -> List[Todo]:
        logger.info("Searching todos", criteria=criteria.model_dump(mode="json", exclude_none=True))
        keyword = criteria.keyword.strip() if criteria.keyword else None
        results = self.repository.search(
            keyword=keyword or None,
            status=criteria.status,
            priority=criteria.priority,
            due_date_from=criteria.due_date_from,
            due_date_to=criteria.due_date_to,
        )
        self.logging_service.log_database_operation("SELECT", "todo", len(results))
        return results

    def find_by_status(self, status: TodoStatus) -> List[Todo]:
        logger.info("Finding todos by status", status=status.value)
        return self.repository.find_by_status(status)

    def find_overdue(self) -> List[Todo]:
        logger.info("Finding overdue todos")
        return self.repository.find_overdue(date.today())

    def count_by_status(self, status: TodoStatus) -> int:
        return self.repository.count_by_status(status)
