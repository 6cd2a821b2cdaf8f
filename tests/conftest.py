import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

os.environ.setdefault("PDL_API_BASE_URL", "http://api.test")

from models import EvaluationRecord, Program  # noqa: E402


@pytest.fixture()
def make_record():
    def _make(**fields):
        fields.setdefault("id", 1)
        return EvaluationRecord(**fields)
    return _make


@pytest.fixture()
def active_program():
    return Program(id=7, name="Liderança 2024", company_id=3, active=True)


@pytest.fixture()
def finalized_program():
    return Program(id=8, name="Gestão de Equipas", company_id=3, active=False, finished_at="2024-06-30T00:00:00Z")
