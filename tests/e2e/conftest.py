"""E2E test configuration.

Auto-applies the 'e2e' marker to all tests in this directory.
Skip with: pytest -m "not e2e"

These run on a real emulator or phone with the browser installed. Without a
device attached (`adb get-state` != device) every test here is skipped.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest

import main
from adb.device import AndroidDevice
from uitest.capture import FailureCapture
from uitest.config import get_settings
from uitest.waits import WaitTimeoutError

_diag_logger = logging.getLogger("e2e.diagnostics")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    e2e_dir = Path(__file__).parent
    for item in items:
        if e2e_dir in item.path.parents:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture(scope="session")
def device() -> AndroidDevice:
    if shutil.which("adb") is None:
        pytest.skip("adb not on PATH")
    dev = AndroidDevice(serial=get_settings().serial)
    if not dev.is_connected():
        pytest.skip("No Android device attached")
    return dev


@pytest.fixture
def ctx(device, tmp_path):
    """Fresh browser profile on the new tab screen."""
    return main.prepare_app(device, get_settings(), str(tmp_path))


@pytest.fixture
def run_scenario(request, device, ctx, tmp_path):
    """Run a scenario function; on failure save screenshot + dump before re-raising."""

    def run(fn):
        try:
            fn(ctx)
        except AssertionError as e:
            element = e.element if isinstance(e, WaitTimeoutError) else None
            artifacts = FailureCapture(device, str(tmp_path)).capture(request.node.name, highlight=element)
            _diag_logger.warning("FAILED %s: artifacts=%s", request.node.name, artifacts)
            raise

    return run
