"""
MetricsTracker Class - Per-route request metrics

This module measures every request served by an instrumented router,
aggregates the results per (method, route) and appends one completion
event per request to the event log.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter
from fastapi.routing import APIRoute
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from autorouter.models.data_models import (
    REPORT_TYPE,
    USER_AGENT_MAX_LENGTH,
    CompletionEvent,
    MetricRecord,
)
from autorouter.services.storage import LogSink
from autorouter.utils.helpers import to_iso, utc_now

logger = logging.getLogger(__name__)

DEFAULT_METRICS_LOG = "Statics.AutoRouter.log"
UNKNOWN = "Unknown"


class RequestTimer:
    """Start time, sequence number and one-shot recording latch of one request"""

    def __init__(self, request_id: int):
        self.request_id = request_id
        self.started = time.perf_counter()
        self._claimed = False
        self._lock = threading.Lock()

    def claim(self) -> bool:
        """True for the first caller only"""
        with self._lock:
            if self._claimed:
                return False
            self._claimed = True
            return True

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 2)


def resolve_route(scope: Scope) -> str:
    """Matched route pattern if routing found one, else the raw request path"""
    route = scope.get("route")
    pattern = getattr(route, "path", None)
    if pattern:
        return pattern
    return scope.get("path") or "/"


def client_ip(scope: Scope) -> str:
    client = scope.get("client")
    return client[0] if client and client[0] else UNKNOWN


def client_user_agent(scope: Scope) -> str:
    value = Headers(scope=scope).get("user-agent") or UNKNOWN
    return value[:USER_AGENT_MAX_LENGTH]


def recent_access_weight(last_access: datetime, now: datetime) -> int:
    hours = (now - last_access).total_seconds() / 3600

    if hours < 1:
        return 100
    if hours < 24:
        return 80
    if hours < 168:
        return 60
    return 20


def popularity_score(metric: MetricRecord, now: datetime) -> float:
    """0.6 * requests + 0.3 * recency weight + 0.1 * distinct clients"""
    request_weight = metric.count * 0.6
    recency_weight = recent_access_weight(metric.last_access, now) * 0.3
    visitor_weight = len(metric.unique_ips) * 0.1
    return round(request_weight + recency_weight + visitor_weight, 2)


class MetricsTracker:
    """
    In-process request metrics aggregator.
    Responsibilities:
    - Start a timer for every tracked request
    - Record each completed request exactly once
    - Aggregate per route key and persist completion events
    - Produce snapshots and reports of the live aggregates

    All aggregate state is guarded by one lock per tracker.
    """

    def __init__(
        self,
        log_file_path: str = DEFAULT_METRICS_LOG,
        enabled: bool = True,
        sink: Optional[LogSink] = None,
    ):
        self.sink = sink or LogSink(log_file_path)
        self.log_file_path = self.sink.file_path
        self.enabled = enabled
        self.request_count = 0
        self._metrics: Dict[str, MetricRecord] = {}
        self._start = time.monotonic()
        self._lock = threading.Lock()

    # ── request lifecycle ────────────────────────────────────────────────────

    def track(self) -> Optional[RequestTimer]:
        """Begin tracking one request; None while tracking is disabled"""
        if not self.enabled:
            return None
        with self._lock:
            self.request_count += 1
            request_id = self.request_count
        return RequestTimer(request_id)

    def complete(self, scope: Scope, timer: RequestTimer, status_code: int) -> bool:
        """
        Completion signal for a tracked request.
        Only the first signal per request records; later ones return False.
        """
        if not timer.claim():
            return False

        self.record(
            method=scope.get("method", "GET"),
            route=resolve_route(scope),
            status_code=status_code,
            response_time=timer.elapsed_ms(),
            ip=client_ip(scope),
            user_agent=client_user_agent(scope),
            request_id=timer.request_id,
        )
        return True

    def record(
        self,
        method: str,
        route: str,
        status_code: int,
        response_time: float,
        ip: str = UNKNOWN,
        user_agent: str = UNKNOWN,
        request_id: Optional[int] = None,
    ) -> CompletionEvent:
        """Fold one finished request into its route's aggregate and log it"""
        now = utc_now()
        user_agent = user_agent[:USER_AGENT_MAX_LENGTH]
        key = f"{method} {route}"

        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                metric = MetricRecord(method=method, route=route, first_access=now, last_access=now)
                self._metrics[key] = metric
            metric.observe(status_code, response_time, ip, user_agent, now)
            if request_id is None:
                request_id = self.request_count

        event = CompletionEvent(
            timestamp=to_iso(now),
            method=method,
            route=route,
            status_code=status_code,
            response_time=response_time,
            ip=ip,
            user_agent=user_agent,
            request_id=request_id,
        )
        self._write_to_log(event.to_log())
        return event

    def _write_to_log(self, entry: Dict[str, Any]) -> None:
        try:
            self.sink.append(entry)
        except OSError as exc:
            logger.error("Error writing to metrics log %s: %s", self.log_file_path, exc)

    # ── reads ────────────────────────────────────────────────────────────────

    def get_metrics(self) -> Dict[str, Any]:
        """Summary plus one entry per route key, most requested first"""
        now = utc_now()
        with self._lock:
            uptime = (time.monotonic() - self._start) * 1000
            total = self.request_count
            routes = [self._route_entry(key, metric, now) for key, metric in self._metrics.items()]

        uptime_minutes = uptime / 60000
        per_minute = round(total / uptime_minutes, 2) if uptime_minutes > 0 else 0.0

        routes.sort(key=lambda r: r["total_requests"], reverse=True)

        return {
            "summary": {
                "total_requests": total,
                "uptime": round(uptime),
                "average_requests_per_minute": per_minute,
                "unique_routes": len(routes),
                "generated_at": to_iso(now),
            },
            "routes": routes,
        }

    @staticmethod
    def _route_entry(key: str, metric: MetricRecord, now: datetime) -> Dict[str, Any]:
        return {
            "endpoint": key,
            "method": metric.method,
            "route": metric.route,
            "total_requests": metric.count,
            "average_response_time": round(metric.average_response_time, 2),
            "status_codes": dict(metric.status_codes),
            "first_access": to_iso(metric.first_access),
            "last_access": to_iso(metric.last_access),
            "unique_visitors": len(metric.unique_ips),
            "popularity_score": popularity_score(metric, now),
        }

    def generate_report(self) -> Dict[str, Any]:
        """Snapshot with top, slowest and failing routes; persisted as a report line"""
        metrics = self.get_metrics()
        routes: List[Dict[str, Any]] = metrics["routes"]

        report = dict(metrics)
        report["top_routes"] = routes[:10]
        report["slowest_routes"] = sorted(
            routes, key=lambda r: r["average_response_time"], reverse=True
        )[:5]
        report["error_routes"] = [
            r for r in routes if any(int(code) >= 400 for code in r["status_codes"])
        ][:5]

        self._write_to_log({"timestamp": to_iso(utc_now()), "type": REPORT_TYPE, "report": report})
        return report

    # ── control ──────────────────────────────────────────────────────────────

    def clear_metrics(self) -> None:
        """Reset in-memory aggregates and uptime; the event log is untouched"""
        with self._lock:
            self._metrics.clear()
            self.request_count = 0
            self._start = time.monotonic()

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False


# =============================================================================
# Router instrumentation
# =============================================================================


async def observe_request(
    tracker: MetricsTracker, app: ASGIApp, scope: Scope, receive: Receive, send: Send
) -> None:
    """
    Run one HTTP request through app and record it on tracker.
    A request completes when its final body message is sent or when app
    raises; whichever comes first is recorded. Recording touches the event
    log, so it runs in the threadpool rather than on the event loop.
    """
    timer = tracker.track()
    if timer is None:
        await app(scope, receive, send)
        return

    status_code = 500

    async def send_wrapper(message: Message) -> None:
        nonlocal status_code
        if message["type"] == "http.response.start":
            status_code = message["status"]
        elif message["type"] == "http.response.body" and not message.get("more_body", False):
            await run_in_threadpool(tracker.complete, scope, timer, status_code)
        await send(message)

    try:
        await app(scope, receive, send_wrapper)
    except Exception:
        await run_in_threadpool(tracker.complete, scope, timer, 500)
        raise


class TrackedRoute(APIRoute):
    """APIRoute that reports every HTTP request it handles to `tracker`"""

    tracker: Optional[MetricsTracker] = None

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        if self.tracker is None or scope["type"] != "http":
            await super().handle(scope, receive, send)
            return
        await observe_request(self.tracker, super().handle, scope, receive, send)


def tracked_route_class(tracker: MetricsTracker, base: Type[APIRoute] = APIRoute) -> Type[APIRoute]:
    """Subclass of base whose routes report to tracker"""
    if issubclass(base, TrackedRoute):
        if base.tracker is tracker:
            return base
        bases: tuple = (base,)
    else:
        bases = (TrackedRoute, base)
    return type(f"Tracked{base.__name__}", bases, {"tracker": tracker})


class TrackedRouter(APIRouter):
    """
    APIRouter whose routes report to a MetricsTracker.

    Routes copied in by include_router are rebuilt with a tracked route
    class, and FastAPI keeps a route's class when this router is itself
    included elsewhere, so tracking follows the routes to any host app.
    Routes the host defines on its own routers are not tracked.
    """

    def __init__(self, tracker: MetricsTracker, **kwargs: Any) -> None:
        self.tracker = tracker
        self._route_classes: Dict[Type[APIRoute], Type[APIRoute]] = {}
        kwargs["route_class"] = self._tracked(kwargs.get("route_class", APIRoute))
        super().__init__(**kwargs)

    def _tracked(self, base: Type[APIRoute]) -> Type[APIRoute]:
        route_class = self._route_classes.get(base)
        if route_class is None:
            route_class = tracked_route_class(self.tracker, base)
            self._route_classes[base] = route_class
        return route_class

    def add_api_route(self, path: str, endpoint: Any, **kwargs: Any) -> None:
        base = kwargs.pop("route_class_override", None) or self.route_class
        super().add_api_route(path, endpoint, route_class_override=self._tracked(base), **kwargs)
