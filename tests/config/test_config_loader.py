"""
Unit tests for ConfigLoader class and the spatial settings models.

This module contains tests for configuration loading, shared/environment
merging, settings validation, and error handling.
"""

import json
import os
import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from gnaf_core.config import ConfigLoader, SpatialServicesSettings, DatabaseSettings, BoundedSetting
from gnaf_core.config.settings import BatchSettings, ThresholdSettings, TerritorySettings
from gnaf_core.exceptions import ConfigurationError


class TestConfigLoader:
    """Test suite for ConfigLoader class."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary directory for configuration files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)

    @pytest.fixture
    def valid_environment_config(self):
        """Valid environment configuration with shared sections."""
        return {
            "shared": {
                "database": {
                    "dsn_env_var": "TEST_GNAF_DSN",
                    "min_pool_size": 2,
                    "max_pool_size": 20
                },
                "spatial": {
                    "cache": {"ttl_seconds": 1800, "max_entries": 1000},
                    "proximity": {
                        "radius_meters": {"minimum": 1, "maximum": 5000, "default": 1000}
                    }
                }
            },
            "environments": {
                "development": {
                    "database": {"max_pool_size": 5},
                    "logging": {"level": "DEBUG", "format": "standard"},
                    "spatial": {"cache": {"ttl_seconds": 60}}
                },
                "production": {
                    "database": {"command_timeout_seconds": 10},
                    "logging": {"level": "INFO", "format": "json"},
                    "spatial": {}
                }
            },
            "validation": {
                "required_environment_variables": ["TEST_GNAF_DSN"],
                "supported_environments": ["development", "production"]
            }
        }

    @pytest.fixture
    def config_loader(self, temp_config_dir):
        """Create ConfigLoader instance with temporary directory."""
        return ConfigLoader(config_dir=str(temp_config_dir))

    @pytest.fixture
    def write_config(self, temp_config_dir):
        def _write(config):
            with open(temp_config_dir / "environment_config.json", 'w') as f:
                json.dump(config, f)
        return _write

    def test_init_default_config_dir(self):
        """Test ConfigLoader initialization with default config directory."""
        loader = ConfigLoader()
        assert loader.config_dir == Path("config")

    def test_init_custom_config_dir(self, temp_config_dir):
        """Test ConfigLoader initialization with custom config directory."""
        loader = ConfigLoader(config_dir=str(temp_config_dir))
        assert loader.config_dir == temp_config_dir

    def test_load_environment_config_success(self, config_loader, write_config, valid_environment_config):
        """Test loading merges shared sections under the environment."""
        write_config(valid_environment_config)

        config = config_loader.load_environment_config("development")

        assert config["database"]["max_pool_size"] == 5
        assert config["database"]["min_pool_size"] == 2  # From shared
        assert config["database"]["dsn_env_var"] == "TEST_GNAF_DSN"  # From shared
        assert config["logging"]["level"] == "DEBUG"
        assert "_validation" in config

    def test_nested_sections_merge_key_by_key(self, config_loader, write_config, valid_environment_config):
        """Test that a nested override keeps its shared siblings."""
        write_config(valid_environment_config)

        config = config_loader.load_environment_config("development")

        assert config["spatial"]["cache"]["ttl_seconds"] == 60
        assert config["spatial"]["cache"]["max_entries"] == 1000
        assert config["spatial"]["proximity"]["radius_meters"]["maximum"] == 5000

    def test_merge_does_not_mutate_shared(self, config_loader, write_config, valid_environment_config):
        """Test that loading one environment does not leak into another."""
        write_config(valid_environment_config)

        config_loader.load_environment_config("development")
        production = config_loader.load_environment_config("production")

        assert production["database"]["max_pool_size"] == 20
        assert production["spatial"]["cache"]["ttl_seconds"] == 1800

    def test_load_environment_config_file_not_found(self, config_loader):
        """Test loading environment configuration when file doesn't exist."""
        with pytest.raises(ConfigurationError) as exc_info:
            config_loader.load_environment_config("development")

        assert "Environment configuration file not found" in str(exc_info.value)

    def test_load_environment_config_invalid_json(self, config_loader, temp_config_dir):
        """Test loading environment configuration with invalid JSON."""
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            f.write("{ invalid json }")

        with pytest.raises(ConfigurationError) as exc_info:
            config_loader.load_environment_config("development")

        assert "Invalid JSON in environment configuration" in str(exc_info.value)

    def test_load_environment_config_missing_environment(self, config_loader, write_config, valid_environment_config):
        """Test loading non-existent environment configuration."""
        write_config(valid_environment_config)

        with pytest.raises(ConfigurationError) as exc_info:
            config_loader.load_environment_config("staging")

        assert "Environment 'staging' not found" in str(exc_info.value)

    def test_get_config_dotted_path(self, config_loader, write_config, valid_environment_config):
        """Test dotted key lookup into the merged configuration."""
        write_config(valid_environment_config)

        assert config_loader.get_config("spatial.cache.ttl_seconds", "development") == 60
        assert config_loader.get_config("logging.format", "production") == "json"

    def test_get_config_missing_path_returns_default(self, config_loader, write_config, valid_environment_config):
        """Test that a missing segment returns the default."""
        write_config(valid_environment_config)

        assert config_loader.get_config("spatial.unknown.key", "development") is None
        assert config_loader.get_config("logging.level.extra", "development", "fallback") == "fallback"

    def test_get_spatial_settings(self, config_loader, write_config, valid_environment_config):
        """Test that the spatial section becomes a validated settings model."""
        write_config(valid_environment_config)

        settings = config_loader.get_spatial_settings("development")

        assert isinstance(settings, SpatialServicesSettings)
        assert settings.cache.ttl_seconds == 60
        assert settings.proximity.radius_meters.maximum == 5000
        assert settings.territory.min_latitude == -45.0

    def test_get_spatial_settings_invalid(self, config_loader, write_config, valid_environment_config):
        """Test that invalid spatial settings surface as ConfigurationError."""
        valid_environment_config["environments"]["development"]["spatial"] = {
            "proximity": {"radius_meters": {"minimum": 10, "maximum": 5, "default": 7}}
        }
        write_config(valid_environment_config)

        with pytest.raises(ConfigurationError) as exc_info:
            config_loader.get_spatial_settings("development")

        assert "Invalid spatial settings for development" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValidationError)

    @patch.dict(os.environ, {"TEST_GNAF_DSN": "postgresql://gnaf@localhost/gnaf"})
    def test_get_database_settings_resolves_dsn(self, config_loader, write_config, valid_environment_config):
        """Test that the DSN is read from the configured environment variable."""
        write_config(valid_environment_config)

        settings = config_loader.get_database_settings("development")

        assert isinstance(settings, DatabaseSettings)
        assert settings.dsn == "postgresql://gnaf@localhost/gnaf"
        assert settings.max_pool_size == 5

    @patch.dict(os.environ, {}, clear=True)
    def test_get_database_settings_without_dsn(self, config_loader, write_config, valid_environment_config):
        """Test that an unset DSN variable leaves the DSN empty."""
        write_config(valid_environment_config)

        settings = config_loader.get_database_settings("development")

        assert settings.dsn is None

    @patch.dict(os.environ, {"TEST_GNAF_DSN": "postgresql://gnaf@localhost/gnaf"})
    def test_validate_environment_variables_success(self, config_loader, write_config, valid_environment_config):
        """Test successful validation of environment variables."""
        write_config(valid_environment_config)

        # Should not raise any exception
        config_loader.validate_environment_variables("development")

    @patch.dict(os.environ, {}, clear=True)
    def test_validate_environment_variables_missing(self, config_loader, write_config, valid_environment_config):
        """Test validation with missing environment variables."""
        write_config(valid_environment_config)

        with pytest.raises(ConfigurationError) as exc_info:
            config_loader.validate_environment_variables("development")

        assert "Missing required environment variables" in str(exc_info.value)
        assert "TEST_GNAF_DSN" in str(exc_info.value)

    def test_validate_environment_config_missing_environments(self, config_loader):
        """Test validation with missing environments key."""
        with pytest.raises(ConfigurationError) as exc_info:
            config_loader._validate_environment_config({"invalid": "config"}, "development")

        assert "Missing 'environments' key" in str(exc_info.value)

    def test_validate_environment_config_missing_keys(self, config_loader):
        """Test validation with missing required keys."""
        invalid_config = {
            "environments": {
                "development": {
                    "database": {}
                    # Missing logging and spatial
                }
            }
        }

        with pytest.raises(ConfigurationError) as exc_info:
            config_loader._validate_environment_config(invalid_config, "development")

        assert "Missing required key" in str(exc_info.value)

    def test_validate_environment_config_keys_from_shared(self, config_loader):
        """Test that required keys may come from the shared section."""
        config = {
            "shared": {"database": {}, "spatial": {}},
            "environments": {"development": {"logging": {"level": "DEBUG"}}}
        }

        # Should not raise any exception
        config_loader._validate_environment_config(config, "development")

    def test_clear_cache(self, config_loader, write_config, valid_environment_config):
        """Test cache clearing functionality."""
        write_config(valid_environment_config)

        config1 = config_loader.load_environment_config("development")
        config2 = config_loader.load_environment_config("development")
        assert config1 is config2

        config_loader.clear_cache()

        config3 = config_loader.load_environment_config("development")
        assert config3 is not config1
        assert config3 == config1

    def test_repository_config_is_valid(self):
        """Test that the shipped configuration loads for every environment."""
        config_dir = Path(__file__).resolve().parents[2] / "config"
        loader = ConfigLoader(config_dir=str(config_dir))

        for environment in ("development", "production"):
            settings = loader.get_spatial_settings(environment)
            assert settings.native_reference_system == "WGS84"
            assert settings.batch.max_operations == 100


class TestSettingsModels:
    """Test suite for the spatial settings models."""

    def test_defaults(self):
        """Test the default limits."""
        settings = SpatialServicesSettings()

        assert settings.geocoding.max_address_length == 500
        assert settings.geocoding.reverse_radius_meters.default == 100
        assert settings.proximity.limit.maximum == 50
        assert settings.cache.key_precision == 6
        assert settings.batch.default_batch_size == 10
        assert settings.statistical.nearest_address_tolerance_meters == 100
        assert settings.monitoring.buffer_capacity == 10000

    @pytest.mark.parametrize("value,expected", [
        (None, 1000),
        (0, 1),
        (-50, 1),
        (250, 250),
        (10000, 5000),
    ])
    def test_bounded_setting_clamp(self, value, expected):
        """Test clamping into range with the default for a missing value."""
        setting = BoundedSetting(minimum=1, maximum=5000, default=1000)
        assert setting.clamp(value) == expected

    def test_bounded_setting_rejects_inverted_range(self):
        """Test that minimum above maximum is rejected."""
        with pytest.raises(ValidationError):
            BoundedSetting(minimum=10, maximum=1, default=5)

    def test_bounded_setting_rejects_default_outside_range(self):
        """Test that a default outside the range is rejected."""
        with pytest.raises(ValidationError):
            BoundedSetting(minimum=1, maximum=10, default=11)

    def test_territory_rejects_empty_box(self):
        """Test that an empty bounding box is rejected."""
        with pytest.raises(ValidationError):
            TerritorySettings(min_latitude=-10.0, max_latitude=-45.0)

    def test_batch_default_above_max(self):
        """Test that the default group size cannot exceed the hard max."""
        with pytest.raises(ValidationError):
            BatchSettings(default_batch_size=60, max_batch_size=50)

    def test_thresholds_must_ascend(self):
        """Test that threshold tiers must be ordered warning < error < critical."""
        with pytest.raises(ValidationError):
            ThresholdSettings(latency_p95_warning_ms=2000, latency_p95_error_ms=1000)

    def test_unknown_native_reference_system(self):
        """Test that the native system must be a supported one."""
        with pytest.raises(ValidationError):
            SpatialServicesSettings(native_reference_system="NAD83")
