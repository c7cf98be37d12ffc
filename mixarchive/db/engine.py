from typing import Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from mixarchive import config
from mixarchive.db.models import Base

# One Engine per URL per process so repositories share a connection pool.
_ENGINES: Dict[str, Engine] = {}


def make_engine(database_url: Optional[str] = None) -> Engine:
    """Create or return a cached SQLAlchemy Engine for `database_url`.

    SQLite engines are created with ``check_same_thread=False`` because the
    async services run repository calls on worker threads.
    """
    database_url = database_url or config.DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL not set")
    engine = _ENGINES.get(database_url)
    if engine is None:
        connect_args = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine = create_engine(database_url, connect_args=connect_args)
        _ENGINES[database_url] = engine
    return engine


def init_orm(engine: Engine) -> Engine:
    """Create any missing tables."""
    Base.metadata.create_all(engine)
    return engine
