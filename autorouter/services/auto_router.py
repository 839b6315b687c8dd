"""
AutoRouter - Composition root

Wires route discovery, the metrics tracker and the statistics manager
together and hands the host application one object to mount.
"""

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, FastAPI

from autorouter.config import AutoRouterConfig
from autorouter.models.data_models import LoadResult
from autorouter.services.metrics_tracker import MetricsTracker
from autorouter.services.route_loader import create_router, load_routes
from autorouter.services.statistics import StatisticsManager
from autorouter.services.storage import LogSink

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 60


@dataclass
class AutoRouter:
    """
    Discovered routes plus the metrics objects watching them.
    Reporting accessors return None when metrics are disabled.
    """
    router: APIRouter
    load_result: LoadResult
    metrics_tracker: Optional[MetricsTracker] = None
    statistics_manager: Optional[StatisticsManager] = None

    @property
    def ok(self) -> bool:
        return not self.load_result.has_errors

    def install(self, app: FastAPI) -> None:
        """Mount the discovered routes on app; tracking travels with the routes"""
        app.include_router(self.router)

    def get_metrics(self) -> Optional[Dict[str, Any]]:
        return self.metrics_tracker.get_metrics() if self.metrics_tracker else None

    def generate_report(self) -> Optional[Dict[str, Any]]:
        return self.metrics_tracker.generate_report() if self.metrics_tracker else None

    def get_daily_report(self, day: Union[date, datetime, None] = None) -> Optional[Dict[str, Any]]:
        if not self.statistics_manager:
            return None
        return self.statistics_manager.generate_daily_report(day)

    def get_summary_report(self, days: int = 7) -> Optional[Dict[str, Any]]:
        if not self.statistics_manager:
            return None
        return self.statistics_manager.generate_summary_report(days)

    def clean_old_logs(self, days: int = 30) -> Optional[int]:
        if not self.statistics_manager:
            return None
        return self.statistics_manager.clean_old_logs(days)


def initialize_auto_router(config: Optional[AutoRouterConfig] = None) -> AutoRouter:
    """
    Discover route modules under config.modules_path and build an AutoRouter.
    Route loading problems never abort; they are logged and reported
    through AutoRouter.load_result. A missing FastAPI installation is
    caught when the autorouter package is imported.
    """
    config = config or AutoRouterConfig()

    tracker: Optional[MetricsTracker] = None
    statistics: Optional[StatisticsManager] = None
    if config.enable_metrics:
        sink = LogSink(config.metrics_log_path)
        tracker = MetricsTracker(sink=sink, enabled=True)
        statistics = StatisticsManager(sink=sink)

    router = create_router(tracker)
    modules_path = config.modules_path

    logger.info(SEPARATOR)
    logger.info("AutoRouter initialization started")
    logger.info("Target directory: %s", modules_path)

    result = load_routes(modules_path, router)

    if not result.has_errors:
        logger.info("AutoRouter loaded %d routes", len(result.loaded_routes))
        if result.loaded_routes:
            logger.info("Loaded routes list:")
            for path in result.loaded_routes:
                logger.info("  - %s", _relative(path, modules_path))
        logger.info("AutoRouter initialization completed successfully")

        if tracker is not None and statistics is not None:
            statistics.log_metrics_summary(tracker)
    else:
        logger.error("Errors occurred during route loading")
        for failure in result.failures:
            logger.error("  - %s: %s", _relative(failure.path, modules_path), failure.message)
        logger.info("AutoRouter initialization completed with errors")

    logger.info(SEPARATOR)

    return AutoRouter(
        router=router,
        load_result=result,
        metrics_tracker=tracker,
        statistics_manager=statistics,
    )


def _relative(path: str, root: str) -> str:
    try:
        relative = os.path.relpath(path, root)
    except ValueError:
        return path
    return relative if len(relative) < len(path) else path
