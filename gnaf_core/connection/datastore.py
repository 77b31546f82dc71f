"""
Gazetteer datastore contract.

Services talk to the gazetteer only through ``GazetteerDatastore``: a single
``query(statement, parameters)`` coroutine returning plain dictionary rows,
plus a synchronous connection-metrics snapshot used for health reporting.
"""

from typing import Any, Dict, List, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, Field


Row = Dict[str, Any]


class DatabaseMetrics(BaseModel):
    """Connection pool and query timing snapshot."""

    total_connections: int = Field(0, ge=0)
    idle_connections: int = Field(0, ge=0)
    waiting_clients: int = Field(0, ge=0)
    total_queries: int = Field(0, ge=0)
    average_query_time_ms: float = Field(0.0, ge=0.0)
    slow_queries: int = Field(0, ge=0)


@runtime_checkable
class GazetteerDatastore(Protocol):
    """Narrow query interface over the address gazetteer."""

    async def query(self, statement: str, parameters: Sequence[Any] = ()) -> List[Row]:
        """Run ``statement`` with positional ``$n`` parameters and return the rows."""
        ...

    def get_metrics(self) -> DatabaseMetrics:
        """Return the current connection metrics."""
        ...
