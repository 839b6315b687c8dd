"""
Configuration

Settings consumed by the composition root. Values come from the environment
so the same image can be pointed at different module trees and log files.
"""

import os
from dataclasses import dataclass

DEFAULT_MODULES_PATH = "./modules"
DEFAULT_METRICS_LOG_PATH = "./Statics.AutoRouter.log"
DEFAULT_LOG_FILE = "./autorouter.log"

_FALSY = ("0", "false", "no", "off")


def env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in _FALSY


@dataclass
class AutoRouterConfig:
    """Where to find route modules and where to write metrics"""
    modules_path: str = DEFAULT_MODULES_PATH
    enable_metrics: bool = True
    metrics_log_path: str = DEFAULT_METRICS_LOG_PATH
    log_file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_env(cls) -> "AutoRouterConfig":
        return cls(
            modules_path=os.getenv("AUTOROUTER_MODULES_PATH", DEFAULT_MODULES_PATH),
            enable_metrics=env_flag("AUTOROUTER_ENABLE_METRICS", True),
            metrics_log_path=os.getenv("AUTOROUTER_METRICS_LOG", DEFAULT_METRICS_LOG_PATH),
            log_file=os.getenv("AUTOROUTER_LOG_FILE", DEFAULT_LOG_FILE),
        )
