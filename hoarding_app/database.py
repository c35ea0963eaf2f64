from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
import os

from hoarding_app.config import DATABASE_SETTINGS

# Allow overriding database via environment.
# Default remains the lightweight local sqlite DB; production points at PostgreSQL.
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./hoardings.db")

_connect_args: dict = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
	_connect_args = {
		"check_same_thread": False,
		"timeout": DATABASE_SETTINGS["sqlite_busy_timeout_seconds"],
	}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=_connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class Base(DeclarativeBase):
	pass
