"""Shared test fixtures."""

import sys
from pathlib import Path

import httpx
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bloodsugar.config import DashboardConfig  # noqa: E402
from bloodsugar.models import RawRecord  # noqa: E402

SAMPLE_CSV = Path(__file__).parent.parent / "public" / "data" / "bloodsugar-data.csv"

SCENARIO_CSV = """date,sugarLevel,type,time,notes
2024-01-01,95,FASTING,,
2024-01-01,150,RANDOM,14:00,
2024-01-02,0,FASTING,,
"""


def make_record(row: int = 0, **values) -> RawRecord:
    return RawRecord(row=row, **values)


@pytest.fixture
def scenario_records():
    return [
        make_record(0, date="2024-01-01", sugar_level=95.0, type="FASTING"),
        make_record(1, date="2024-01-01", sugar_level=150.0, type="RANDOM", time="14:00"),
        make_record(2, date="2024-01-02", sugar_level=0.0, type="FASTING"),
    ]


@pytest.fixture
def local_csv(tmp_path):
    path = tmp_path / "bloodsugar-data.csv"
    path.write_text(SCENARIO_CSV, encoding="utf-8")
    return path


@pytest.fixture
def local_config(local_csv):
    return DashboardConfig(local_csv_path=local_csv)


@pytest.fixture
def missing_csv(tmp_path):
    return tmp_path / "nope" / "bloodsugar-data.csv"


def mock_client(status_code: int = 200, text: str = "", content_type: str = "text/csv") -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=text, headers={"content-type": content_type})

    return httpx.Client(transport=httpx.MockTransport(handler))


def failing_client() -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.Client(transport=httpx.MockTransport(handler))
