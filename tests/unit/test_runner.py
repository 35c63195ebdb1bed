"""Suite runner: result records, failure artifacts, results.jsonl."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

import main
from tests.fakes import FakeBrowser


def test_run_scenario_pass(fast_settings, tmp_path):
    browser = FakeBrowser()
    result = main.run_scenario(main.get_scenario("dismiss_prompt_presence"), browser, fast_settings, str(tmp_path))
    assert result["outcome"] == "PASS"
    assert result["artifacts"] == {}
    assert ("pm_clear", fast_settings.package) in browser.calls
    assert ("launch_app", fast_settings.package) in browser.calls


def test_run_scenario_assertion_failure_captures_artifacts(fast_settings, tmp_path):
    browser = FakeBrowser(prompt_enabled=False)
    result = main.run_scenario(main.get_scenario("prompt_presence"), browser, fast_settings, str(tmp_path))
    assert result["outcome"] == "FAIL"
    assert result["failure_type"] == "FAILED_ASSERTION"
    assert "Turn on search suggestions?" in result["notes"]
    assert Path(result["artifacts"]["screenshot"]).exists()
    assert Path(result["artifacts"]["hierarchy"]).exists()


def test_run_scenario_step_error(fast_settings, tmp_path):
    def explode(ctx):
        ctx.app.buttons["Nope"].tap()

    result = main.run_scenario({"name": "broken", "run": explode}, FakeBrowser(), fast_settings, str(tmp_path))
    assert result["outcome"] == "ERROR"
    assert result["failure_type"] == "FAILED_STEP"
    assert result["notes"].startswith("ElementNotFoundError")


def test_unexpected_exception_is_an_error_not_a_crash(fast_settings, tmp_path):
    def boom(ctx):
        {}["missing"]

    result = main.run_scenario({"name": "boom", "run": boom}, FakeBrowser(), fast_settings, str(tmp_path))
    assert result["outcome"] == "ERROR"
    assert result["failure_type"] == "FAILED_STEP"
    assert result["notes"].startswith("KeyError")


def test_broken_capture_keeps_the_failure(fast_settings, tmp_path):
    browser = FakeBrowser(prompt_enabled=False)
    with patch("main.FailureCapture.capture", side_effect=ValueError("bad png")):
        result = main.run_scenario(main.get_scenario("prompt_presence"), browser, fast_settings, str(tmp_path))
    assert result["outcome"] == "FAIL"
    assert result["artifacts"] == {}


def test_suite_continues_after_a_crashing_scenario(fast_settings):
    def boom(ctx):
        {}["missing"]

    scenarios = {
        "ok": {"name": "ok", "run": lambda ctx: None},
        "boom": {"name": "boom", "run": boom},
        "after": {"name": "after", "run": lambda ctx: None},
    }
    with patch("main.AndroidDevice", return_value=FakeBrowser()), patch("main.get_scenario", side_effect=scenarios.get):
        run_dir, results = main.run_suite(["ok", "boom", "after"])
    lines = (Path(run_dir) / "results.jsonl").read_text(encoding="utf-8").splitlines()
    assert [(r["name"], r["outcome"]) for r in map(json.loads, lines)] == [
        ("ok", "PASS"),
        ("boom", "ERROR"),
        ("after", "PASS"),
    ]


def test_clear_app_can_be_disabled(fast_settings, tmp_path):
    fast_settings.clear_app_each_test = False
    browser = FakeBrowser()
    main.prepare_app(browser, fast_settings, str(tmp_path))
    assert not any(c[0] == "pm_clear" for c in browser.calls)


def test_run_suite_writes_jsonl(fast_settings):
    browser = FakeBrowser()
    with patch("main.AndroidDevice", return_value=browser):
        run_dir, results = main.run_suite(["no_suggestions_when_entering_url"])
    lines = (Path(run_dir) / "results.jsonl").read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["outcome"] for line in lines] == ["PASS"]
    assert results[0]["name"] == "no_suggestions_when_entering_url"


def test_run_suite_requires_a_device(fast_settings):
    browser = FakeBrowser()
    browser.connected = False
    with patch("main.AndroidDevice", return_value=browser):
        with pytest.raises(RuntimeError, match="No Android device"):
            main.run_suite()


def test_main_exit_code(fast_settings):
    with patch("main.run_suite", return_value=("runs/x", [{"outcome": "PASS"}, {"outcome": "FAIL"}])):
        assert main.main([]) == 1
    with patch("main.run_suite", return_value=("runs/x", [{"outcome": "PASS"}])):
        assert main.main(["prompt_presence"]) == 0
