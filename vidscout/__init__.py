# vidscout/__init__.py
"""
VidScout package initializer.
Defines package version and exposes the discovery entry points.
"""
__version__ = "0.1.0"

from vidscout.engine import DiscoveryEngine, discover  # noqa: E402
from vidscout.aggregator import DiscoveryOutcome  # noqa: E402

__all__ = ["__version__", "DiscoveryEngine", "DiscoveryOutcome", "discover"]
