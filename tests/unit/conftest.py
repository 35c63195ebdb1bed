"""Unit test fixtures: tight timeouts and a simulated browser instead of a device."""

from __future__ import annotations

import pytest

from scenarios.search import ScenarioContext
from tests.fakes import FakeBrowser
from uitest.browser_screens import NEW_TAB_SCREEN, create_screen_graph
from uitest.config import Settings, set_settings
from uitest.elements import App


@pytest.fixture(autouse=True)
def fast_settings(tmp_path):
    settings = Settings(
        timeout_s=1.0,
        poll_s=0.01,
        absence_hold_s=0.05,
        long_press_ms=10,
        settle_timeout_s=1.0,
        runs_dir=str(tmp_path / "runs"),
    )
    set_settings(settings)
    yield settings
    set_settings(None)


@pytest.fixture
def browser() -> FakeBrowser:
    # Already past onboarding, sitting on the new tab screen.
    return FakeBrowser(first_run=False)


@pytest.fixture
def app(browser, fast_settings) -> App:
    return App(browser, fast_settings)


@pytest.fixture
def ctx(app, fast_settings) -> ScenarioContext:
    navigator = create_screen_graph(app).navigator(NEW_TAB_SCREEN)
    return ScenarioContext(app=app, navigator=navigator, settings=fast_settings)
