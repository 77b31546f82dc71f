"""Typed settings models for the G-NAF Spatial Services system.

The ``spatial`` and ``database`` sections of ``environment_config.json`` are
validated into these pydantic models so that services receive consistent,
range-checked limits instead of raw dictionaries.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class BoundedSetting(BaseModel):
    """An inclusive ``[minimum, maximum]`` range with a default used when a caller omits the value."""

    minimum: float = Field(..., description="Smallest accepted value")
    maximum: float = Field(..., description="Largest accepted value")
    default: float = Field(..., description="Value used when the caller supplies none")

    @model_validator(mode="after")
    def validate_range(self) -> "BoundedSetting":
        if self.minimum > self.maximum:
            raise ValueError(f"minimum {self.minimum} exceeds maximum {self.maximum}")
        if not self.minimum <= self.default <= self.maximum:
            raise ValueError(f"default {self.default} outside [{self.minimum}, {self.maximum}]")
        return self

    def clamp(self, value: Optional[float]) -> float:
        """Return ``value`` clamped into range, or the default when ``value`` is None."""
        if value is None:
            return self.default
        return min(max(value, self.minimum), self.maximum)


class TerritorySettings(BaseModel):
    """Australian territorial bounding box, inclusive on every edge."""

    min_latitude: float = Field(-45.0, ge=-90.0, le=90.0)
    max_latitude: float = Field(-10.0, ge=-90.0, le=90.0)
    min_longitude: float = Field(110.0, ge=-180.0, le=180.0)
    max_longitude: float = Field(155.0, ge=-180.0, le=180.0)

    @model_validator(mode="after")
    def validate_box(self) -> "TerritorySettings":
        if self.min_latitude >= self.max_latitude:
            raise ValueError("min_latitude must be below max_latitude")
        if self.min_longitude >= self.max_longitude:
            raise ValueError("min_longitude must be below max_longitude")
        return self


class GeocodingSettings(BaseModel):
    max_address_length: int = Field(500, gt=0)
    candidate_limit: int = Field(5, gt=0, description="Rows fetched for forward-geocoding scoring")
    reverse_radius_meters: BoundedSetting = Field(
        default_factory=lambda: BoundedSetting(minimum=1, maximum=1000, default=100)
    )
    reverse_limit: BoundedSetting = Field(
        default_factory=lambda: BoundedSetting(minimum=1, maximum=10, default=1)
    )


class ProximitySettings(BaseModel):
    radius_meters: BoundedSetting = Field(
        default_factory=lambda: BoundedSetting(minimum=1, maximum=5000, default=1000)
    )
    limit: BoundedSetting = Field(
        default_factory=lambda: BoundedSetting(minimum=1, maximum=50, default=10)
    )


class CacheSettings(BaseModel):
    key_precision: int = Field(6, ge=0, le=10, description="Decimal places kept in coordinate cache keys")
    ttl_seconds: float = Field(1800.0, gt=0)
    max_entries: int = Field(1000, gt=0)


class BatchSettings(BaseModel):
    default_batch_size: int = Field(10, gt=0)
    max_batch_size: int = Field(50, gt=0)
    max_operations: int = Field(100, gt=0)
    degraded_active_jobs: int = Field(10, ge=0, description="Active job count above which health is degraded")

    @model_validator(mode="after")
    def validate_sizes(self) -> "BatchSettings":
        if self.default_batch_size > self.max_batch_size:
            raise ValueError("default_batch_size must not exceed max_batch_size")
        return self


class StatisticalSettings(BaseModel):
    nearest_address_tolerance_meters: float = Field(100.0, gt=0)


class ThresholdSettings(BaseModel):
    """Alert threshold values evaluated by the performance monitor."""

    latency_p95_warning_ms: float = 500.0
    latency_p95_error_ms: float = 1000.0
    latency_p95_critical_ms: float = 3000.0
    error_rate_warning: float = Field(0.05, ge=0.0, le=1.0)
    error_rate_error: float = Field(0.10, ge=0.0, le=1.0)
    error_rate_critical: float = Field(0.20, ge=0.0, le=1.0)
    throughput_floor_warning: float = Field(10.0, ge=0.0)
    pool_saturation_warning: float = Field(18.0, ge=0.0)
    cache_hit_floor_warning: float = Field(0.7, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_tiers(self) -> "ThresholdSettings":
        latency = (self.latency_p95_warning_ms, self.latency_p95_error_ms, self.latency_p95_critical_ms)
        errors = (self.error_rate_warning, self.error_rate_error, self.error_rate_critical)
        if list(latency) != sorted(latency):
            raise ValueError("latency tiers must be ascending warning < error < critical")
        if list(errors) != sorted(errors):
            raise ValueError("error rate tiers must be ascending warning < error < critical")
        return self


class MonitoringSettings(BaseModel):
    buffer_capacity: int = Field(10000, gt=0)
    alert_check_interval_seconds: float = Field(30.0, gt=0)
    summary_interval_seconds: float = Field(300.0, gt=0)
    statistics_window_seconds: float = Field(300.0, gt=0)
    alert_retention_hours: float = Field(24.0, gt=0)
    top_operations: int = Field(10, gt=0)
    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)


class SpatialServicesSettings(BaseModel):
    """All tunables of the spatial services, grouped per component."""

    native_reference_system: str = Field("WGS84", description="Reference system the gazetteer stores")
    territory: TerritorySettings = Field(default_factory=TerritorySettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    proximity: ProximitySettings = Field(default_factory=ProximitySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)
    statistical: StatisticalSettings = Field(default_factory=StatisticalSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("native_reference_system")
    @classmethod
    def validate_native_system(cls, v: str) -> str:
        if v.upper() not in ("WGS84", "GDA2020"):
            raise ValueError(f"unsupported native reference system: {v}")
        return v.upper()


class DatabaseSettings(BaseModel):
    """Connection settings for the PostgreSQL/PostGIS gazetteer."""

    dsn: Optional[str] = Field(None, description="Connection string; read from dsn_env_var when absent")
    dsn_env_var: str = Field("DATABASE_URL")
    min_pool_size: int = Field(2, ge=0)
    max_pool_size: int = Field(20, gt=0)
    command_timeout_seconds: float = Field(30.0, gt=0)
    slow_query_threshold_ms: float = Field(5000.0, gt=0)
    query_history_size: int = Field(1000, gt=0)

    @model_validator(mode="after")
    def validate_pool(self) -> "DatabaseSettings":
        if self.min_pool_size > self.max_pool_size:
            raise ValueError("min_pool_size must not exceed max_pool_size")
        return self
