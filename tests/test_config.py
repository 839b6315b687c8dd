"""Tests for configuration, logging setup and small helpers."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from autorouter.config import (
    DEFAULT_METRICS_LOG_PATH,
    DEFAULT_MODULES_PATH,
    AutoRouterConfig,
)
from autorouter.utils.helpers import day_key, format_uptime, parse_ts, safe_int, to_iso
from autorouter.utils.logging_config import LOGGER_NAME, configure_logging


class TestAutoRouterConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "AUTOROUTER_MODULES_PATH",
            "AUTOROUTER_ENABLE_METRICS",
            "AUTOROUTER_METRICS_LOG",
            "AUTOROUTER_LOG_FILE",
        ):
            monkeypatch.delenv(name, raising=False)

        config = AutoRouterConfig.from_env()

        assert config.modules_path == DEFAULT_MODULES_PATH
        assert config.enable_metrics is True
        assert config.metrics_log_path == DEFAULT_METRICS_LOG_PATH

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTOROUTER_MODULES_PATH", "/srv/modules")
        monkeypatch.setenv("AUTOROUTER_METRICS_LOG", "/var/log/metrics.log")
        monkeypatch.setenv("AUTOROUTER_LOG_FILE", "/var/log/autorouter.log")

        config = AutoRouterConfig.from_env()

        assert config.modules_path == "/srv/modules"
        assert config.metrics_log_path == "/var/log/metrics.log"
        assert config.log_file == "/var/log/autorouter.log"

    @pytest.mark.parametrize(
        "raw,expected",
        [("false", False), ("0", False), ("No", False), ("off", False), ("true", True), ("1", True), ("", True)],
    )
    def test_enable_metrics_flag(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
        monkeypatch.setenv("AUTOROUTER_ENABLE_METRICS", raw)
        assert AutoRouterConfig.from_env().enable_metrics is expected


class TestConfigureLogging:
    def test_writes_bracketed_iso_lines(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "autorouter.log"
        configure_logging(str(log_file))

        logging.getLogger(f"{LOGGER_NAME}.services.route_loader").warning("Route file has no export")

        line = log_file.read_text(encoding="utf-8").strip()
        assert line.startswith("[")
        assert "Z] [WARNING] Route file has no export" in line

    def test_reconfiguring_does_not_stack_handlers(self, tmp_path: Path) -> None:
        configure_logging(str(tmp_path / "a.log"))
        logger = configure_logging(str(tmp_path / "b.log"))

        assert len(logger.handlers) == 2

    def test_console_only(self) -> None:
        logger = configure_logging(None)
        assert len(logger.handlers) == 1


class TestHelpers:
    def test_to_iso_uses_z_suffix(self) -> None:
        dt = datetime(2025, 3, 10, 9, 5, 1, 123456, tzinfo=timezone.utc)
        assert to_iso(dt) == "2025-03-10T09:05:01.123Z"

    def test_parse_ts(self) -> None:
        assert parse_ts("2025-03-10T09:05:01.123Z") == datetime(2025, 3, 10, 9, 5, 1, 123000, tzinfo=timezone.utc)
        assert parse_ts("garbage") is None
        assert parse_ts(None) is None

    def test_safe_int(self) -> None:
        assert safe_int("404") == 404
        assert safe_int(None) is None
        assert safe_int("abc") is None
        assert safe_int(float("inf")) is None

    def test_day_key(self) -> None:
        assert day_key(date(2025, 3, 10)) == "2025-03-10"
        assert day_key(datetime(2025, 3, 10, 23, 0, tzinfo=timezone.utc)) == "2025-03-10"

    @pytest.mark.parametrize(
        "ms,expected",
        [(5_000, "5s"), (125_000, "2m 5s"), (3_720_000, "1h 2m"), (93_780_000, "1d 2h 3m")],
    )
    def test_format_uptime(self, ms: int, expected: str) -> None:
        assert format_uptime(ms) == expected
