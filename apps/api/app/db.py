from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .core.config import settings

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_session():
    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
