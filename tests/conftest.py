"""Shared fixtures: temporary event logs and route module trees."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List

import pytest

VALID_ROUTE_MODULE = '''\
from fastapi import APIRouter

router = APIRouter()


@router.get("{path}")
def handler():
    return {{"route": "{path}"}}
'''

BROKEN_ROUTE_MODULE = '''\
raise RuntimeError("boom while importing")
'''

NO_EXPORT_ROUTE_MODULE = '''\
def handler():
    return "not a router"
'''


def write_module(directory: Path, name: str, source: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(source, encoding="utf-8")
    return path


def write_route(directory: Path, name: str, route_path: str) -> Path:
    return write_module(directory, name, VALID_ROUTE_MODULE.format(path=route_path))


def write_events(path: Path, lines: Iterable[Any]) -> None:
    """Write events (dicts are JSON encoded, strings written as-is)"""
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write((json.dumps(line) if isinstance(line, dict) else line) + "\n")


def event(
    timestamp: str,
    route: str = "/users",
    method: str = "GET",
    status_code: int = 200,
    response_time: float = 10,
    ip: str = "10.0.0.1",
    request_id: int = 1,
) -> Dict[str, Any]:
    return {
        "timestamp": timestamp,
        "method": method,
        "route": route,
        "statusCode": status_code,
        "responseTime": response_time,
        "ip": ip,
        "userAgent": "pytest",
        "requestId": request_id,
    }


def read_log(path: Path) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "metrics.log"


@pytest.fixture
def modules_dir(tmp_path: Path) -> Path:
    """Three valid route modules (one nested) and one that fails to import."""
    root = tmp_path / "modules"
    write_route(root, "status_route.py", "/status")
    write_route(root / "users", "index_route.py", "/users/{user_id}")
    write_route(root / "products", "catalog_route.py", "/products")
    write_module(root / "auth", "login_route.py", BROKEN_ROUTE_MODULE)
    return root


@pytest.fixture
def route_factory() -> Callable[[Path, str, str], Path]:
    return write_route
