"""
Connection module for the G-NAF Spatial Services system.

This module provides the gazetteer datastore contract and its PostgreSQL
adapter.
"""

from .datastore import GazetteerDatastore, DatabaseMetrics, Row
from .gazetteer_database import GazetteerDatabase

__all__ = [
    'GazetteerDatastore',
    'DatabaseMetrics',
    'Row',
    'GazetteerDatabase'
]
