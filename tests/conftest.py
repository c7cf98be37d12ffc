import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mixarchive.db.models import Base


@pytest.fixture
def session_factory(tmp_path):
    # File-backed so repository calls made from worker threads share one database.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, future=True)
    engine.dispose()
