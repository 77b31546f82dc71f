"""G-NAF Processing Modules

This package contains the processing modules built on the gnaf_core framework.
Each module implements the SpatialService interface for its services.
"""
