"""
Route Loader - Discovers route modules and mounts them

This module walks a directory tree, imports every file named *route.py and
includes the APIRouter it exports into one composed router.
"""

import hashlib
import importlib.util
import logging
import os
import sys
from typing import Callable, Optional

from fastapi import APIRouter

from autorouter.exceptions import RouteModuleError
from autorouter.models.data_models import LoadResult
from autorouter.services.metrics_tracker import MetricsTracker, TrackedRouter

logger = logging.getLogger(__name__)

ROUTE_FILE_SUFFIX = "route.py"
ROUTER_EXPORT = "router"

RouteModuleLoader = Callable[[str], Optional[APIRouter]]


def is_route_file(name: str) -> bool:
    return name.endswith(ROUTE_FILE_SUFFIX)


def _module_name(path: str) -> str:
    """Unique, importable name so same-named files in different folders don't collide"""
    digest = hashlib.sha1(os.path.abspath(path).encode("utf-8")).hexdigest()[:12]
    stem = os.path.splitext(os.path.basename(path))[0].replace(".", "_")
    return f"autorouter_modules.{stem}_{digest}"


def import_route_module(path: str) -> Optional[APIRouter]:
    """
    Import one route module and return its exported router.
    Returns None when the module has no usable `router` attribute.
    Raises RouteModuleError when the module fails to import.
    """
    name = _module_name(path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise RouteModuleError(path)

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(name, None)
        raise RouteModuleError(path, exc) from exc

    exported = getattr(module, ROUTER_EXPORT, None)
    if isinstance(exported, APIRouter):
        return exported
    return None


def create_router(tracker: Optional[MetricsTracker] = None) -> APIRouter:
    """
    Router that discovered route modules are mounted into.
    With a tracker, every request served by a mounted route is recorded on it.
    """
    if tracker is None:
        return APIRouter()
    return TrackedRouter(tracker)


def load_routes(
    folder_path: str,
    router: APIRouter,
    loader: RouteModuleLoader = import_route_module,
) -> LoadResult:
    """
    Recursively load every route module under folder_path into router.
    Failures are recorded on the result; loading never stops early.
    """
    result = LoadResult()
    _visit(folder_path, router, loader, result)
    return result


def _visit(folder_path: str, router: APIRouter, loader: RouteModuleLoader, result: LoadResult) -> None:
    logger.info("Scanning directory: %s", folder_path)

    try:
        names = sorted(os.listdir(folder_path))
    except OSError as exc:
        logger.error('Error reading directory "%s": %s', folder_path, exc)
        result.add_failure(folder_path, f"Error reading directory: {exc}")
        return

    logger.info("Found %d items in %s", len(names), folder_path)

    for name in names:
        path = os.path.join(folder_path, name)

        if os.path.isdir(path):
            logger.info("Entering subdirectory: %s", path)
            _visit(path, router, loader, result)
        elif os.path.isfile(path) and is_route_file(name):
            _mount(path, router, loader, result)


def _mount(path: str, router: APIRouter, loader: RouteModuleLoader, result: LoadResult) -> None:
    result.loaded_route_uris.append(path)
    logger.info("Processing route file: %s", path)

    try:
        module_router = loader(path)
    except RouteModuleError as exc:
        logger.error("Failed to load route: %s", path, exc_info=exc)
        result.add_failure(path, str(exc))
        return

    if module_router is None:
        message = f'Route file "{path}" has no usable "{ROUTER_EXPORT}" export'
        logger.warning(message)
        result.warnings.append(message)
        return

    try:
        router.include_router(module_router)
    except Exception as exc:
        logger.error("Failed to mount route: %s", path, exc_info=exc)
        result.add_failure(path, f"Failed to mount route: {exc}")
        return

    result.loaded_routes.append(path)
    logger.info("Route loaded successfully: %s", path)
