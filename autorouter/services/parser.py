"""
EventParser Class - Handles parsing and classification

This module parses raw event log lines into dicts and classifies them.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from autorouter.models.data_models import REPORT_TYPES
from autorouter.utils.helpers import parse_ts, safe_int


class EventParser:
    """
    Parses raw event log lines.
    Responsibilities:
    - Parse JSON lines (corrupt lines yield None)
    - Tell completion events apart from persisted reports
    - Extract event timestamps
    """

    @staticmethod
    def parse_json(line: str) -> Optional[Dict[str, Any]]:
        """Parse JSON line, return None if invalid or not an object"""
        try:
            obj = json.loads(line)
        except ValueError:
            return None
        return obj if isinstance(obj, dict) else None

    @staticmethod
    def is_report(entry: Dict[str, Any]) -> bool:
        return entry.get("type") in REPORT_TYPES

    @staticmethod
    def timestamp(entry: Dict[str, Any]) -> Optional[datetime]:
        return parse_ts(entry.get("timestamp"))

    @staticmethod
    def response_time(entry: Dict[str, Any]) -> Optional[float]:
        value = entry.get("responseTime")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    @staticmethod
    def status_code(entry: Dict[str, Any]) -> Optional[int]:
        value = entry.get("statusCode")
        if isinstance(value, bool):
            return None
        return safe_int(value)
