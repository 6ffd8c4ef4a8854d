# app/db/base.py
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session
from app.core.config import settings

DB_URL = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}

# In-memory SQLite lives as long as its connection, so every session shares one
engine_kwargs = {"poolclass": StaticPool} if DB_URL in ("sqlite://", "sqlite:///:memory:") else {}

engine = create_engine(DB_URL, echo=False, connect_args=connect_args, **engine_kwargs)

def get_session():
    with Session(engine) as session:
        yield session

def init_db():
    import app.db.models  # Important : importe tous les modèles
    SQLModel.metadata.create_all(engine)
