"""
PostgreSQL/PostGIS gazetteer adapter for the G-NAF Spatial Services system.

This module provides the asyncpg-backed implementation of the
``GazetteerDatastore`` contract with connection retry, query timing and
connection metrics.
"""

import asyncio
import time
from collections import deque
from typing import Any, Deque, List, Optional, Sequence

import asyncpg
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from .datastore import DatabaseMetrics, Row
from ..config import DatabaseSettings
from ..exceptions import DatastoreConnectionError, DependencyFailureError
from ..interfaces import HealthCheckResult, HealthState
from ..utils import get_logger, log_performance

logger = get_logger(__name__)


class GazetteerDatabase:
    """
    asyncpg connection pool wrapper implementing ``GazetteerDatastore``.

    Only pool creation is retried. Query failures and timeouts are wrapped in
    ``DependencyFailureError`` and propagated to the caller unchanged otherwise.
    """

    def __init__(self, settings: DatabaseSettings):
        """
        Initialize the gazetteer database adapter.

        Args:
            settings: Validated database settings with a resolved DSN
        """
        self.settings = settings
        self._pool: Optional[asyncpg.Pool] = None
        self._query_times: Deque[float] = deque(maxlen=settings.query_history_size)
        self._total_queries = 0
        self._slow_queries = 0
        self._waiting_clients = 0
        logger.debug("GazetteerDatabase initialized")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type(OSError),
        reraise=True
    )
    async def _create_pool(self) -> asyncpg.Pool:
        return await asyncpg.create_pool(
            dsn=self.settings.dsn,
            min_size=self.settings.min_pool_size,
            max_size=self.settings.max_pool_size,
            command_timeout=self.settings.command_timeout_seconds,
        )

    @log_performance
    async def connect(self) -> None:
        """
        Create the connection pool, retrying transient network failures.

        Raises:
            DatastoreConnectionError: If the pool cannot be created
        """
        if self._pool is not None:
            return

        if not self.settings.dsn:
            raise DatastoreConnectionError(
                f"No database DSN configured; set {self.settings.dsn_env_var}"
            )

        try:
            self._pool = await self._create_pool()
        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            error_msg = f"Failed to connect to gazetteer database: {str(e)}"
            logger.error(error_msg)
            raise DatastoreConnectionError(error_msg) from e

        logger.info(
            f"Connected to gazetteer database "
            f"(pool {self.settings.min_pool_size}-{self.settings.max_pool_size})"
        )

    async def query(self, statement: str, parameters: Sequence[Any] = ()) -> List[Row]:
        """
        Execute a statement and return its rows as dictionaries.

        Args:
            statement: SQL with positional ``$n`` placeholders
            parameters: Values bound to the placeholders

        Returns:
            List of rows as plain dictionaries

        Raises:
            DependencyFailureError: If the pool is unavailable or the query fails
        """
        if self._pool is None:
            raise DependencyFailureError("Gazetteer database is not connected - call connect() first")

        start = time.perf_counter()
        try:
            self._waiting_clients += 1
            try:
                connection = await self._pool.acquire()
            finally:
                self._waiting_clients -= 1
            try:
                records = await connection.fetch(statement, *parameters)
            finally:
                await self._pool.release(connection)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            raise DependencyFailureError(
                f"Gazetteer query failed: {str(e)}",
                {"error_type": type(e).__name__}
            ) from e
        finally:
            self._record_query_time((time.perf_counter() - start) * 1000)

        return [dict(record) for record in records]

    def _record_query_time(self, duration_ms: float) -> None:
        self._total_queries += 1
        self._query_times.append(duration_ms)
        if duration_ms > self.settings.slow_query_threshold_ms:
            self._slow_queries += 1
            logger.warning(f"Slow gazetteer query took {duration_ms:.0f}ms")

    def get_metrics(self) -> DatabaseMetrics:
        """
        Get connection pool and query timing metrics.

        Returns:
            DatabaseMetrics snapshot; pool counts are zero when not connected
        """
        average = sum(self._query_times) / len(self._query_times) if self._query_times else 0.0
        return DatabaseMetrics(
            total_connections=self._pool.get_size() if self._pool else 0,
            idle_connections=self._pool.get_idle_size() if self._pool else 0,
            waiting_clients=self._waiting_clients,
            total_queries=self._total_queries,
            average_query_time_ms=round(average, 2),
            slow_queries=self._slow_queries,
        )

    async def health_check(self) -> HealthCheckResult:
        """
        Run ``SELECT 1`` and report latency.

        Returns:
            HealthCheckResult, unhealthy when the query fails
        """
        start = time.perf_counter()
        try:
            await self.query("SELECT 1")
        except DependencyFailureError as e:
            logger.error(f"Gazetteer database health check failed: {e.message}")
            return HealthCheckResult(status=HealthState.UNHEALTHY, details={"error": e.message})

        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        return HealthCheckResult(status=HealthState.HEALTHY, details={"latency_ms": latency_ms})

    def is_connected(self) -> bool:
        return self._pool is not None

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Gazetteer database connection pool closed")
