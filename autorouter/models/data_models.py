"""
Data Models (DTOs - Data Transfer Objects)

This module contains all dataclass definitions used throughout the application.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Set

# Report lines share the event log with completion events; both tags are
# skipped by report generation ("METRICS_REPORT" is the legacy spelling).
REPORT_TYPE = "REPORT"
REPORT_TYPES = frozenset({REPORT_TYPE, "METRICS_REPORT"})

USER_AGENT_MAX_LENGTH = 100


@dataclass
class LoadFailure:
    """A directory or route module that could not be loaded"""
    path: str
    message: str


@dataclass
class LoadResult:
    """
    Outcome of one discovery pass.
    A single instance is owned by the top-level load_routes call and
    mutated by every recursive visit.
    """
    has_errors: bool = False
    loaded_routes: List[str] = field(default_factory=list)
    loaded_route_uris: List[str] = field(default_factory=list)
    failures: List[LoadFailure] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_failure(self, path: str, message: str) -> None:
        self.has_errors = True
        self.failures.append(LoadFailure(path=path, message=message))


@dataclass
class MetricRecord:
    """Running aggregate for one route key"""
    method: str
    route: str
    first_access: datetime
    last_access: datetime
    count: int = 0
    total_response_time: float = 0.0
    average_response_time: float = 0.0
    status_codes: Dict[str, int] = field(default_factory=dict)
    unique_ips: Set[str] = field(default_factory=set)
    user_agents: Set[str] = field(default_factory=set)

    def observe(
        self,
        status_code: int,
        response_time: float,
        ip: str,
        user_agent: str,
        at: datetime,
    ) -> None:
        self.count += 1
        self.total_response_time += response_time
        self.average_response_time = self.total_response_time / self.count
        self.last_access = at
        self.unique_ips.add(ip)
        self.user_agents.add(user_agent)

        key = str(status_code)
        self.status_codes[key] = self.status_codes.get(key, 0) + 1


@dataclass
class CompletionEvent:
    """One persisted record of a finished request"""
    timestamp: str
    method: str
    route: str
    status_code: int
    response_time: float
    ip: str
    user_agent: str
    request_id: int

    def to_log(self) -> Dict[str, Any]:
        """Field names as written to the event log"""
        return {
            "timestamp": self.timestamp,
            "method": self.method,
            "route": self.route,
            "statusCode": self.status_code,
            "responseTime": self.response_time,
            "ip": self.ip,
            "userAgent": self.user_agent[:USER_AGENT_MAX_LENGTH],
            "requestId": self.request_id,
        }
