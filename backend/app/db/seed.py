# app/db/seed.py
from datetime import date, timedelta

import structlog
from sqlmodel import Session, select

from app.db.base import engine
from app.db.models import Todo, TodoPriority, TodoStatus

logger = structlog.get_logger("app.db.seed")


def seed_initial_data():
    with Session(engine) as session:
        if session.exec(select(Todo)).first():
            return

        todos = [
            Todo(
                title="Write the release notes",
                description="Summarise the changes since the last tag",
                status=TodoStatus.IN_PROGRESS,
                priority=TodoPriority.HIGH,
                due_date=date.today() + timedelta(days=2),
            ),
            Todo(
                title="Rotate the audit log archive",
                status=TodoStatus.TODO,
                priority=TodoPriority.MEDIUM,
                due_date=date.today() + timedelta(days=7),
            ),
            Todo(
                title="Set up the staging database",
                description="Same schema as production",
                status=TodoStatus.DONE,
                priority=TodoPriority.LOW,
            ),
        ]

        session.add_all(todos)
        session.commit()
        logger.info("Seeded initial todos", count=len(todos))
