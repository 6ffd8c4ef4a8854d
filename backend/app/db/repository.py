# app/db/repository.py
from datetime import date
from typing import List, Optional

from sqlalchemy import func, or_
from sqlmodel import Session, select

from app.db.models import Todo, TodoPriority, TodoStatus


class TodoRepository:
    def __init__(self, session: Session):
        self.session = session

    def save(self, todo: Todo) -> Todo:
        self.session.add(todo)
        self.session.commit()
        self.session.refresh(todo)
        return todo

    def find_by_id(self, todo_id: int) -> Optional[Todo]:
        return self.session.get(Todo, todo_id)

    def exists_by_id(self, todo_id: int) -> bool:
        return self.find_by_id(todo_id) is not None

    def delete_by_id(self, todo_id: int) -> None:
        todo = self.find_by_id(todo_id)
        if todo is not None:
            self.session.delete(todo)
            self.session.commit()

    def find_all(self, offset: int = 0, limit: int = 10) -> List[Todo]:
        stmt = select(Todo).order_by(Todo.created_at.desc(), Todo.id.desc()).offset(offset).limit(limit)
        return list(self.session.exec(stmt).all())

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(Todo)).one()

    def find_by_status(self, status: TodoStatus) -> List[Todo]:
        return list(self.session.exec(select(Todo).where(Todo.status == status)).all())

    def count_by_status(self, status: TodoStatus) -> int:
        stmt = select(func.count()).select_from(Todo).where(Todo.status == status)
        return self.session.exec(stmt).one()

    def find_overdue(self, today: date) -> List[Todo]:
        stmt = select(Todo).where(Todo.due_date < today, Todo.status != TodoStatus.DONE)
        return list(self.session.exec(stmt).all())

    def search(
        self,
        keyword: Optional[str] = None,
        status: Optional[TodoStatus] = None,
        priority: Optional[TodoPriority] = None,
        due_date_from: Optional[date] = None,
        due_date_to: Optional[date] = None,
    ) -> List[Todo]:
        stmt = select(Todo)
        if keyword:
            stmt = stmt.where(or_(Todo.title.contains(keyword), Todo.description.contains(keyword)))
        if status:
            stmt = stmt.where(Todo.status == status)
        if priority:
            stmt = stmt.where(Todo.priority == priority)
        if due_date_from:
            stmt = stmt.where(Todo.due_date >= due_date_from)
        if due_date_to:
            stmt = stmt.where(Todo.due_date <= due_date_to)
        return list(self.session.exec(stmt.order_by(Todo.id)).all())
