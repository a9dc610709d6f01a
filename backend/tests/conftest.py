import os
import tempfile

# Settings are read at import time: point the app at a throwaway SQLite file first.
_DB_DIR = tempfile.mkdtemp(prefix="tourdesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["SELECTION_THROTTLE_SECONDS"] = "0"
os.environ["HOUSEKEEPING_INTERVAL_SECONDS"] = "0"

import pytest  # noqa: E402

from tourdesk.db.init_db import create_tables  # noqa: E402
from tourdesk.db.session import engine  # noqa: E402
from tourdesk.models.base import Base  # noqa: E402

create_tables()


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
