"""Shared fakes for the spatial services tests."""

from typing import Any, Dict, List, Sequence

import pytest

from gnaf_core.connection import DatabaseMetrics
from modules.spatial_services.coordinates import CoordinateTransform


class FakeDatastore:
    """In-memory ``GazetteerDatastore`` recording every issued statement.

    ``responses`` maps a statement to rows, an exception to raise, or a
    callable receiving the parameters. Unmapped statements return ``rows``.
    """

    def __init__(self, rows: Sequence[Dict[str, Any]] = ()):
        self.rows = list(rows)
        self.responses: Dict[str, Any] = {}
        self.calls: List[tuple] = []
        self.metrics = DatabaseMetrics()

    async def query(self, statement: str, parameters: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        self.calls.append((statement, list(parameters)))
        response = self.responses.get(statement, self.rows)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(list(parameters))
        return [dict(row) for row in response]

    def get_metrics(self) -> DatabaseMetrics:
        return self.metrics

    def calls_for(self, statement: str) -> List[list]:
        return [parameters for issued, parameters in self.calls if issued == statement]


class FakeClock:
    """Manually advanced time source in seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def datastore():
    return FakeDatastore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transform():
    return CoordinateTransform()


def address_row(gnaf_pid="GAVIC411711441", latitude=-37.8136, longitude=144.9631, reliability=2,
                street_number="10", street_name="BRIDGE", street_type="ROAD",
                locality_name="BARWON HEADS", **extra) -> Dict[str, Any]:
    """A gazetteer address row as returned by the address queries."""
    row = {
        "address_detail_pid": gnaf_pid,
        "gnaf_pid": gnaf_pid,
        "latitude": latitude,
        "longitude": longitude,
        "coordinate_precision": "PROPERTY",
        "coordinate_reliability": reliability,
        "street_number": street_number,
        "street_name": street_name,
        "street_type": street_type,
        "locality_name": locality_name,
        "state_code": "VIC",
        "postcode": "3227",
        "formatted_address": f"{street_number} {street_name} {street_type}, {locality_name} VIC 3227",
    }
    row.update(extra)
    return row


@pytest.fixture
def make_address_row():
    return address_row
