"""
StatisticsManager Class - Reports over the persisted event log

This module replays the event log written by MetricsTracker into daily and
multi-day summary reports, and applies the retention window.
"""

import json
import logging
import os
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from autorouter.services.metrics_tracker import MetricsTracker
from autorouter.services.parser import EventParser
from autorouter.services.storage import LogSink
from autorouter.utils.helpers import day_key, format_uptime, utc_now

logger = logging.getLogger(__name__)

DEFAULT_METRICS_LOG = "Statics.AutoRouter.log"
SLOW_REQUEST_MS = 1000
TOP_LIMIT = 10


class StatisticsManager:
    """
    Builds reports from the event log, independent of any live tracker.
    Responsibilities:
    - Load and parse all events (corrupt lines dropped)
    - Compute daily reports
    - Compute trailing-window summaries
    - Discard events older than the retention window
    """

    def __init__(
        self,
        log_file_path: str = DEFAULT_METRICS_LOG,
        sink: Optional[LogSink] = None,
        parser: Optional[EventParser] = None,
    ):
        self.sink = sink or LogSink(log_file_path)
        self.log_file_path = self.sink.file_path
        self.parser = parser or EventParser()

    def read_statistics(self) -> List[Dict[str, Any]]:
        """All parseable events in file order; [] when the log does not exist"""
        entries: List[Dict[str, Any]] = []
        for line in self.sink.read_lines():
            entry = self.parser.parse_json(line)
            if entry is not None:
                entries.append(entry)
        return entries

    def _request_events(self, entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [e for e in entries if not self.parser.is_report(e)]

    def generate_daily_report(self, day: Union[date, datetime, None] = None) -> Dict[str, Any]:
        """
        Aggregate the completion events of one calendar day (UTC).
        Timestamps with an offset are converted to UTC before matching, so
        the day filter and the hourly histogram agree.
        """
        target = day_key(day)
        dated = []
        for e in self._request_events(self.read_statistics()):
            ts = self.parser.timestamp(e)
            if ts is not None and ts.date().isoformat() == target:
                dated.append((e, ts))
        entries = [e for e, _ in dated]

        routes: Dict[str, Dict[str, Any]] = {}
        methods: Dict[str, int] = {}
        status_codes: Dict[str, int] = {}
        hourly: Dict[str, int] = {f"{i:02d}": 0 for i in range(24)}
        slowest: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []
        total_response_time = 0.0

        for e, ts in dated:
            route = str(e.get("route"))
            method = str(e.get("method"))
            status = self.parser.status_code(e)
            response_time = self.parser.response_time(e) or 0.0

            stats = routes.setdefault(
                route,
                {"count": 0, "methods": {}, "total_response_time": 0.0, "average_response_time": 0.0},
            )
            stats["count"] += 1
            stats["total_response_time"] += response_time
            stats["average_response_time"] = round(stats["total_response_time"] / stats["count"], 2)
            stats["methods"][method] = stats["methods"].get(method, 0) + 1

            methods[method] = methods.get(method, 0) + 1
            status_key = str(status)
            status_codes[status_key] = status_codes.get(status_key, 0) + 1

            hourly[ts.strftime("%H")] += 1

            total_response_time += response_time

            if response_time > SLOW_REQUEST_MS:
                slowest.append(
                    {
                        "route": route,
                        "method": method,
                        "response_time": response_time,
                        "timestamp": e.get("timestamp"),
                        "ip": e.get("ip"),
                    }
                )

            if status is not None and status >= 400:
                errors.append(
                    {
                        "route": route,
                        "method": method,
                        "status_code": status,
                        "timestamp": e.get("timestamp"),
                        "ip": e.get("ip"),
                    }
                )

        slowest.sort(key=lambda s: s["response_time"], reverse=True)

        ranked = sorted(routes.items(), key=lambda kv: kv[1]["count"], reverse=True)
        top_routes = [
            {
                "route": route,
                "requests": stats["count"],
                "average_response_time": stats["average_response_time"],
            }
            for route, stats in ranked[:TOP_LIMIT]
        ]

        return {
            "date": target,
            "total_requests": len(entries),
            "unique_ips": len({e.get("ip") for e in entries}),
            "routes": routes,
            "methods": methods,
            "status_codes": status_codes,
            "hourly_distribution": hourly,
            "average_response_time": round(total_response_time / len(entries), 2) if entries else 0,
            "slowest_requests": slowest[:TOP_LIMIT],
            "errors": errors,
            "top_routes": top_routes,
        }

    def generate_summary_report(self, days: int = 7, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Aggregate completion events in the trailing window [now - days, now].
        Performance figures cover only events that carry a response time.
        """
        if days <= 0:
            raise ValueError("days must be a positive number")

        now = now or utc_now()
        start = now - timedelta(days=days)

        entries: List[Dict[str, Any]] = []
        for e in self._request_events(self.read_statistics()):
            ts = self.parser.timestamp(e)
            if ts is not None and start <= ts <= now:
                entries.append(e)

        daily: Dict[str, int] = {}
        route_counts: Dict[str, int] = {}
        durations: List[float] = []
        error_count = 0

        for e in entries:
            day = self.parser.timestamp(e).date().isoformat()
            daily[day] = daily.get(day, 0) + 1

            route = str(e.get("route"))
            route_counts[route] = route_counts.get(route, 0) + 1

            response_time = self.parser.response_time(e)
            if response_time is not None:
                durations.append(response_time)

            status = self.parser.status_code(e)
            if status is not None and status >= 400:
                error_count += 1

        total = len(entries)
        most_active = max(daily.items(), key=lambda kv: kv[1]) if daily else None
        ranked_routes = sorted(route_counts.items(), key=lambda kv: kv[1], reverse=True)

        return {
            "period": f"{days} days",
            "start_date": start.date().isoformat(),
            "end_date": now.date().isoformat(),
            "total_requests": total,
            "unique_ips": len({e.get("ip") for e in entries}),
            "average_requests_per_day": round(total / days, 2),
            "most_active_day": (
                {"date": most_active[0], "requests": most_active[1]} if most_active else None
            ),
            "performance": {
                "average_response_time": round(sum(durations) / len(durations), 2) if durations else 0,
                "fastest_response": min(durations) if durations else 0,
                "slowest_response": max(durations) if durations else 0,
            },
            "top_routes": [
                {"route": route, "requests": count} for route, count in ranked_routes[:TOP_LIMIT]
            ],
            "error_rate": round(error_count / total * 100.0, 2) if total else 0,
        }

    def clean_old_logs(self, days_to_keep: int = 30, now: Optional[datetime] = None) -> int:
        """
        Rewrite the log keeping only events at or after the cutoff.
        Returns how many events were discarded.
        """
        if days_to_keep < 0:
            raise ValueError("days_to_keep must not be negative")

        cutoff = (now or utc_now()) - timedelta(days=days_to_keep)

        with self.sink.exclusive():
            if not self.sink.exists():
                return 0

            entries = self.read_statistics()
            if not entries:
                return 0

            kept = []
            for e in entries:
                ts = self.parser.timestamp(e)
                if ts is not None and ts >= cutoff:
                    kept.append(e)

            self.sink.rewrite(kept)

        removed = len(entries) - len(kept)
        if removed > 0:
            logger.info("Cleaned %d old log entries (older than %d days)", removed, days_to_keep)
        return removed

    def write_report(self, report: Dict[str, Any], filename: str) -> str:
        """Write a report as indented JSON; returns the absolute path"""
        path = os.path.abspath(filename)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        logger.info("Report written to: %s", path)
        return path

    def log_metrics_summary(self, tracker: MetricsTracker, top: int = 5) -> None:
        """Log a tracker's live summary and its busiest routes"""
        metrics = tracker.get_metrics()
        summary = metrics["summary"]

        logger.info("Metrics Summary")
        logger.info("  Total Requests: %s", summary["total_requests"])
        logger.info("  Unique Routes: %s", summary["unique_routes"])
        logger.info("  Avg Req/Min: %s", summary["average_requests_per_minute"])
        logger.info("  Uptime: %s", format_uptime(summary["uptime"]))

        if metrics["routes"]:
            logger.info("Top %d Routes", top)
            for index, route in enumerate(metrics["routes"][:top], start=1):
                logger.info(
                    "  %d. %s %d req %sms",
                    index,
                    route["endpoint"],
                    route["total_requests"],
                    route["average_response_time"],
                )

        logger.info("Metrics logged to: %s", tracker.log_file_path)
