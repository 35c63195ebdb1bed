"""
Runtime settings for the UI test suite.

Everything is driven by environment variables so the same suite can point at
a different browser build or a slower emulator without code changes.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_PACKAGE = "org.mozilla.firefox"


def _bool_env(name: str, default: bool) -> bool:
    v = os.environ.get(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _int_env(name: str, default: int) -> int:
    v = os.environ.get(name)
    try:
        return int(v) if v is not None else default
    except Exception:
        return default


def _float_env(name: str, default: float) -> float:
    v = os.environ.get(name)
    try:
        return float(v) if v is not None else default
    except Exception:
        return default


@dataclass
class Settings:
    package: str = DEFAULT_PACKAGE
    serial: Optional[str] = None
    # Wait helpers: how long to poll, how often, and how long an element
    # must stay gone before "does not exist" counts as satisfied.
    timeout_s: float = 5.0
    poll_s: float = 0.25
    absence_hold_s: float = 1.0
    long_press_ms: int = 1500
    settle_timeout_s: float = 6.0
    clear_app_each_test: bool = True
    runs_dir: str = "runs"
    verbose_logs: bool = False


def load_settings() -> Settings:
    return Settings(
        package=os.environ.get("BROWSER_PACKAGE", DEFAULT_PACKAGE),
        serial=os.environ.get("ADB_SERIAL") or None,
        timeout_s=_float_env("UITEST_TIMEOUT_S", 5.0),
        poll_s=_float_env("UITEST_POLL_S", 0.25),
        absence_hold_s=_float_env("UITEST_ABSENCE_HOLD_S", 1.0),
        long_press_ms=_int_env("UITEST_LONG_PRESS_MS", 1500),
        settle_timeout_s=_float_env("UITEST_SETTLE_TIMEOUT_S", 6.0),
        clear_app_each_test=_bool_env("CLEAR_APP_EACH_TEST", True),
        runs_dir=os.environ.get("RUNS_DIR", "runs"),
        verbose_logs=_bool_env("VERBOSE_LOGS", False),
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, loaded from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: Optional[Settings]):
    # Tests swap in tight timeouts; None forces a reload from the environment.
    global _settings
    _settings = settings
