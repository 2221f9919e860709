import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep settings, the database and the sync log out of the real user data dir.
os.environ.setdefault("APROPRIAPP_DATA_DIR", tempfile.mkdtemp(prefix="apropriapp-tests-"))

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from storage.db import init_db
from storage.kv_store import KeyValueStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@pytest.fixture
def kv(engine):
    return KeyValueStore(lambda: Session(engine))
