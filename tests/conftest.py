import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure repository root is on sys.path for module imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
sys.path.insert(0, str(Path(__file__).resolve().parent))

# A Wednesday; the week started on Sunday 2024-03-17.
TODAY = date(2024, 3, 20)


@pytest.fixture
def today():
    return TODAY
