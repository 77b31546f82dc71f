"""
G-NAF Spatial Services core framework.

Shared configuration, logging, exceptions, the service interface and the
gazetteer datastore connection used by the spatial service modules.
"""

__version__ = "1.0.0"
