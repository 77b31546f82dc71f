"""Spatial Services Entry Point

Composition root wiring every spatial service explicitly, and the command-line
interface that runs single operations against the gazetteer.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from typing import Any, Callable, Dict, List, Optional

from gnaf_core.config import ConfigLoader, SpatialServicesSettings
from gnaf_core.connection import GazetteerDatastore, GazetteerDatabase
from gnaf_core.exceptions import GnafBaseException
from gnaf_core.interfaces import SpatialService, worst_state
from gnaf_core.utils import setup_logging
from .batch import BatchSpatialService
from .boundaries import BoundaryService
from .caching import SpatialCache
from .coordinates import CoordinateTransform
from .geocoding import GeocodingService
from .monitoring import PerformanceMonitoringService
from .proximity import SpatialAnalyticsService
from .statistical_areas import StatisticalAreaService

logger = logging.getLogger(__name__)


class SpatialServices:
    """Explicitly constructed service graph shared by every caller."""

    def __init__(self, transform: CoordinateTransform, monitor: PerformanceMonitoringService,
                 boundary_cache: SpatialCache, statistical_cache: SpatialCache,
                 geocoding: GeocodingService, spatial_analytics: SpatialAnalyticsService,
                 boundary: BoundaryService, statistical: StatisticalAreaService,
                 batch: BatchSpatialService):
        self.transform = transform
        self.monitor = monitor
        self.boundary_cache = boundary_cache
        self.statistical_cache = statistical_cache
        self.geocoding = geocoding
        self.spatial_analytics = spatial_analytics
        self.boundary = boundary
        self.statistical = statistical
        self.batch = batch

    @property
    def services(self) -> List[SpatialService]:
        return [self.geocoding, self.spatial_analytics, self.boundary, self.statistical, self.batch]

    async def health_report(self) -> Dict[str, Any]:
        """Per-service health checks plus the monitoring snapshot."""
        checks = await asyncio.gather(*(service.health_check() for service in self.services))
        system = self.monitor.get_system_health_status()
        status = worst_state([system.status] + [check.status for check in checks])
        return {
            "status": status.value,
            "services": {
                service.service_name: check.model_dump(mode="json")
                for service, check in zip(self.services, checks)
            },
            "system": system.to_response(),
        }


def build_services(settings: SpatialServicesSettings, datastore: GazetteerDatastore,
                   cache_clock: Callable[[], float] = time.monotonic,
                   monitor_clock: Callable[[], float] = time.time) -> SpatialServices:
    """Wire the spatial services around a single datastore."""
    transform = CoordinateTransform(settings.territory, settings.native_reference_system)
    cache_settings = settings.cache
    boundary_cache = SpatialCache(
        "boundary", cache_settings.ttl_seconds, cache_settings.max_entries, cache_settings.key_precision, cache_clock
    )
    statistical_cache = SpatialCache(
        "statistical", cache_settings.ttl_seconds, cache_settings.max_entries, cache_settings.key_precision,
        cache_clock
    )
    monitor = PerformanceMonitoringService(
        settings.monitoring, datastore, [boundary_cache, statistical_cache], monitor_clock
    )

    geocoding = GeocodingService(datastore, transform, settings.geocoding, monitor)
    spatial_analytics = SpatialAnalyticsService(datastore, geocoding, transform, settings.proximity, monitor)
    boundary = BoundaryService(datastore, transform, boundary_cache, monitor)
    statistical = StatisticalAreaService(
        datastore, geocoding, transform, statistical_cache, settings.statistical, monitor
    )
    batch = BatchSpatialService(spatial_analytics, boundary, statistical, settings.batch, monitor)

    logger.info("Spatial services wired")
    return SpatialServices(
        transform=transform,
        monitor=monitor,
        boundary_cache=boundary_cache,
        statistical_cache=statistical_cache,
        geocoding=geocoding,
        spatial_analytics=spatial_analytics,
        boundary=boundary,
        statistical=statistical,
        batch=batch,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="G-NAF Spatial Services - geocoding and spatial analysis against the gazetteer"
    )
    parser.add_argument(
        "--environment",
        choices=["development", "production"],
        default="development",
        help="Environment to run against (default: development)"
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory containing environment_config.json (default: config/)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    geocode = subparsers.add_parser("geocode", help="Resolve an address to coordinates")
    geocode.add_argument("address")
    geocode.add_argument("--coordinate-system", default="WGS84")

    reverse = subparsers.add_parser("reverse", help="Find addresses near a coordinate")
    reverse.add_argument("latitude", type=float)
    reverse.add_argument("longitude", type=float)
    reverse.add_argument("--radius", type=float, default=None)
    reverse.add_argument("--limit", type=int, default=None)
    reverse.add_argument("--coordinate-system", default="WGS84")

    batch = subparsers.add_parser("batch", help="Run a batch request read from a JSON file")
    batch.add_argument("file")

    subparsers.add_parser("health", help="Report service and system health")
    return parser


async def _run_command(parsed_args: argparse.Namespace, services: SpatialServices) -> Dict[str, Any]:
    if parsed_args.command == "geocode":
        result = await services.geocoding.geocode({
            "address": parsed_args.address,
            "coordinateSystem": parsed_args.coordinate_system,
        })
        return result.to_response()

    if parsed_args.command == "reverse":
        result = await services.geocoding.reverse_geocode({
            "coordinates": {"latitude": parsed_args.latitude, "longitude": parsed_args.longitude},
            "radius": parsed_args.radius,
            "limit": parsed_args.limit,
            "coordinateSystem": parsed_args.coordinate_system,
        })
        return result.to_response()

    if parsed_args.command == "batch":
        with open(parsed_args.file, "r", encoding="utf-8") as f:
            payload = json.load(f)
        result = await services.batch.process_batch(payload)
        return result.to_response()

    return await services.health_report()


async def _run(parsed_args: argparse.Namespace) -> Dict[str, Any]:
    config_loader = ConfigLoader(parsed_args.config_dir)
    logging_config = config_loader.get_config("logging", parsed_args.environment, {})
    setup_logging(
        parsed_args.environment,
        logging_config.get("level", "INFO"),
        logging_config.get("log_dir"),
    )
    config_loader.validate_environment_variables(parsed_args.environment)

    database = GazetteerDatabase(config_loader.get_database_settings(parsed_args.environment))
    await database.connect()
    try:
        services = build_services(config_loader.get_spatial_settings(parsed_args.environment), database)
        return await _run_command(parsed_args, services)
    finally:
        await database.close()


def main(args: Optional[list] = None) -> int:
    """Main entry point for the spatial services CLI.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 for a caller error, 2 for any other failure)
    """
    parsed_args = _build_parser().parse_args(args)

    try:
        output = asyncio.run(_run(parsed_args))
    except GnafBaseException as e:
        logger.error(f"{parsed_args.command} failed: {e}")
        print(json.dumps({"error": e.to_dict()}, indent=2), file=sys.stderr)
        return 1 if e.is_client_error else 2
    except (OSError, ValueError) as e:
        logger.error(f"{parsed_args.command} failed: {e}")
        print(json.dumps({"error": {"code": "INTERNAL_ERROR", "message": str(e)}}, indent=2), file=sys.stderr)
        return 2

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
