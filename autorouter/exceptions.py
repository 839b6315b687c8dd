"""
Custom exceptions for autorouter.

Discovery and tracking problems are recorded and logged rather than raised;
only the exceptions below cross module boundaries.
"""

from typing import Optional


class AutoRouterError(Exception):
    """Base class for autorouter errors"""


class DependencyMissingError(AutoRouterError):
    """The web framework autorouter mounts into is not installed"""


class RouteModuleError(AutoRouterError):
    """A route module raised while being imported"""

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        self.path = path
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error"
        super().__init__(f"Failed to load route: {path} ({detail})")
