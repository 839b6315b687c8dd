from __future__ import annotations

import os
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from autorouter.config import AutoRouterConfig
from autorouter.services.auto_router import AutoRouter, initialize_auto_router
from autorouter.utils.logging_config import configure_logging

# ──────────────────────────────────────────────────────────────────────────────
# Config
# ──────────────────────────────────────────────────────────────────────────────

API_PREFIX = "/api"

# Run with: uvicorn autorouter.main:create_app --factory


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────


def require_metrics(value: Optional[Any]) -> Any:
    if value is None:
        raise HTTPException(status_code=404, detail="Metrics are disabled")
    return value


def log_file_stats(path: str) -> Dict[str, Any]:
    exists = os.path.exists(path)
    size_bytes = os.path.getsize(path) if exists else 0
    total_lines = 0
    if exists:
        with open(path, "r", encoding="utf-8") as f:
            total_lines = sum(1 for line in f if line.strip())
    return {
        "exists": exists,
        "path": os.path.abspath(path),
        "size_bytes": size_bytes,
        "total_lines": total_lines,
    }


# ──────────────────────────────────────────────────────────────────────────────
# Reporting API
# ──────────────────────────────────────────────────────────────────────────────


def build_api_router(auto: AutoRouter, config: AutoRouterConfig) -> APIRouter:
    api = APIRouter(prefix=API_PREFIX)

    @api.get("/health")
    def health() -> Dict[str, Any]:
        result = auto.load_result
        return {
            "status": "ok" if auto.ok else "degraded",
            "metrics_enabled": auto.metrics_tracker is not None,
            "loaded_routes": len(result.loaded_routes),
            "discovered_routes": len(result.loaded_route_uris),
            "failures": [{"path": f.path, "message": f.message} for f in result.failures],
            "warnings": list(result.warnings),
            "log_file": log_file_stats(config.metrics_log_path) if config.enable_metrics else None,
        }

    @api.get("/metrics")
    def metrics() -> Dict[str, Any]:
        return require_metrics(auto.get_metrics())

    @api.post("/metrics/report")
    def metrics_report() -> Dict[str, Any]:
        return require_metrics(auto.generate_report())

    @api.get("/stats/daily")
    def daily_report(day: Optional[date] = Query(None, alias="date")) -> Dict[str, Any]:
        return require_metrics(auto.get_daily_report(day))

    @api.get("/stats/summary")
    def summary_report(days: int = Query(7, ge=1, le=365)) -> Dict[str, Any]:
        return require_metrics(auto.get_summary_report(days))

    @api.post("/stats/cleanup")
    def cleanup(days: int = Query(30, ge=0, le=3650)) -> Dict[str, Any]:
        removed = require_metrics(auto.clean_old_logs(days))
        return {"status": "ok", "removed": removed, "days_to_keep": days}

    return api


# ──────────────────────────────────────────────────────────────────────────────
# App
# ──────────────────────────────────────────────────────────────────────────────


def create_app(config: Optional[AutoRouterConfig] = None) -> FastAPI:
    config = config or AutoRouterConfig.from_env()
    configure_logging(config.log_file or None)

    app = FastAPI(title="AutoRouter (Discovered Routes + Request Metrics)")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # dev OK; lock down in prod
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    auto = initialize_auto_router(config)
    app.state.auto_router = auto

    app.include_router(build_api_router(auto, config))
    auto.install(app)

    return app
