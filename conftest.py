import sys
import time
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parent
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)


@pytest.fixture
def no_sleep(monkeypatch):
    """Make every time.sleep instant; returns the list of requested delays."""
    delays = []
    monkeypatch.setattr(time, "sleep", lambda s: delays.append(s))
    return delays
