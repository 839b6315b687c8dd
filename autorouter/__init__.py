import importlib.util

from autorouter.exceptions import DependencyMissingError

# Checked before anything below imports fastapi.
if importlib.util.find_spec("fastapi") is None:
    raise DependencyMissingError(
        "FastAPI is required but not found. Please install it with: pip install fastapi"
    )

from autorouter.config import AutoRouterConfig
from autorouter.services.auto_router import AutoRouter, initialize_auto_router
from autorouter.services.metrics_tracker import MetricsTracker, TrackedRouter
from autorouter.services.statistics import StatisticsManager

__all__ = [
    "AutoRouter",
    "AutoRouterConfig",
    "DependencyMissingError",
    "MetricsTracker",
    "StatisticsManager",
    "TrackedRouter",
    "initialize_auto_router",
]
