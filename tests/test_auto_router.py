"""Tests for the composition root."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from autorouter.config import AutoRouterConfig
from autorouter.exceptions import DependencyMissingError
from autorouter.services.auto_router import initialize_auto_router


def make_config(tmp_path: Path, modules_dir: Path, enable_metrics: bool = True) -> AutoRouterConfig:
    return AutoRouterConfig(
        modules_path=str(modules_dir),
        enable_metrics=enable_metrics,
        metrics_log_path=str(tmp_path / "metrics.log"),
        log_file="",
    )


def test_failed_modules_do_not_block_loaded_ones(tmp_path: Path, modules_dir: Path) -> None:
    auto = initialize_auto_router(make_config(tmp_path, modules_dir))

    assert auto.ok is False
    assert len(auto.load_result.loaded_routes) == 3
    assert [Path(f.path).name for f in auto.load_result.failures] == ["login_route.py"]

    app = FastAPI()
    auto.install(app)
    client = TestClient(app)

    assert client.get("/status").status_code == 200
    assert client.get("/users/1").status_code == 200

    metrics = auto.get_metrics()
    assert metrics["summary"]["total_requests"] == 2
    assert {r["endpoint"] for r in metrics["routes"]} == {"GET /status", "GET /users/{user_id}"}


def test_accessors_share_one_log(tmp_path: Path, route_factory) -> None:
    modules = tmp_path / "modules"
    route_factory(modules, "ping_route.py", "/ping")

    auto = initialize_auto_router(make_config(tmp_path, modules))
    app = FastAPI()
    auto.install(app)
    client = TestClient(app)

    client.get("/ping")
    client.get("/ping")
    report = auto.generate_report()

    assert auto.ok is True
    assert report["top_routes"][0]["total_requests"] == 2
    assert auto.get_daily_report()["total_requests"] == 2
    assert auto.get_summary_report(7)["total_requests"] == 2
    assert auto.clean_old_logs(30) == 0


def test_metrics_disabled(tmp_path: Path, route_factory) -> None:
    modules = tmp_path / "modules"
    route_factory(modules, "ping_route.py", "/ping")

    auto = initialize_auto_router(make_config(tmp_path, modules, enable_metrics=False))
    app = FastAPI()
    auto.install(app)

    assert TestClient(app).get("/ping").status_code == 200
    assert auto.metrics_tracker is None
    assert auto.get_metrics() is None
    assert auto.generate_report() is None
    assert auto.get_daily_report() is None
    assert auto.get_summary_report(7) is None
    assert auto.clean_old_logs(30) is None
    assert not (tmp_path / "metrics.log").exists()


def test_plain_include_router_is_tracked(tmp_path: Path, route_factory) -> None:
    modules = tmp_path / "modules"
    route_factory(modules, "ping_route.py", "/ping")

    auto = initialize_auto_router(make_config(tmp_path, modules))
    app = FastAPI()
    app.include_router(auto.router)

    assert TestClient(app).get("/ping").status_code == 200
    assert auto.get_metrics()["summary"]["total_requests"] == 1
    assert auto.get_daily_report()["total_requests"] == 1


def test_missing_fastapi_fails_package_import(monkeypatch: pytest.MonkeyPatch) -> None:
    # keep the already-imported exceptions module so the raised class is the one imported here
    for name in list(sys.modules):
        if (name == "autorouter" or name.startswith("autorouter.")) and name != "autorouter.exceptions":
            monkeypatch.delitem(sys.modules, name)
    monkeypatch.setitem(sys.modules, "fastapi", None)

    with pytest.raises(DependencyMissingError, match="pip install fastapi"):
        importlib.import_module("autorouter")


def test_missing_modules_directory(tmp_path: Path) -> None:
    auto = initialize_auto_router(make_config(tmp_path, tmp_path / "absent"))

    assert auto.ok is False
    assert auto.load_result.loaded_routes == []
