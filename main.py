"""
Suite runner for the browser search UI tests.

Runs the scenario registry against the attached Android device, one fresh
browser profile per scenario, and saves results + failure artifacts under
runs/<timestamp>/.

    python main.py                      # whole suite
    python main.py prompt_presence      # selected scenarios
"""

import json
import logging
import os
import sys
import time
import traceback
from datetime import datetime

from adb.device import AndroidDevice
from scenarios.search import SCENARIOS, ScenarioContext, get_scenario
from uitest.browser_screens import NEW_TAB_SCREEN, create_screen_graph, dismiss_first_run_ui
from uitest.capture import FailureCapture, wait_for_screen_stable
from uitest.config import Settings, get_settings
from uitest.elements import App
from uitest.waits import WaitTimeoutError

logging.basicConfig(level=logging.INFO, format="%(message)s")


def prepare_app(device: AndroidDevice, settings: Settings, run_dir: str) -> ScenarioContext:
    """Fresh profile, app in the foreground, navigator on the new tab screen."""
    device.force_stop(settings.package)
    if settings.clear_app_each_test:
        device.pm_clear(settings.package)
    device.launch_app(settings.package)
    wait_for_screen_stable(device, run_dir, timeout=settings.settle_timeout_s)

    app = App(device, settings)
    navigator = create_screen_graph(app).navigator(NEW_TAB_SCREEN)
    dismiss_first_run_ui(app)
    return ScenarioContext(app=app, navigator=navigator, settings=settings)


def build_result(name: str, outcome: str, failure_type: str, notes: str, duration_s: float, artifacts: dict) -> dict:
    return {
        "name": name,
        "outcome": outcome,
        "failure_type": failure_type,
        "notes": notes,
        "duration_s": round(duration_s, 2),
        "artifacts": artifacts,
    }


def _capture(capture: FailureCapture, name: str, highlight=None) -> dict:
    """Failure artifacts never replace the scenario's own outcome."""
    try:
        return capture.capture(name, highlight=highlight)
    except Exception as e:
        logging.warning(f"[CAPTURE] {name}: capture failed: {type(e).__name__}: {e}")
        return {}


def run_scenario(scenario: dict, device: AndroidDevice, settings: Settings, run_dir: str) -> dict:
    name = scenario["name"]
    capture = FailureCapture(device, run_dir)
    started = time.monotonic()
    ctx = None
    try:
        ctx = prepare_app(device, settings, run_dir)
        scenario["run"](ctx)
    except AssertionError as e:
        # WaitTimeoutError / NavigationError land here too
        logging.info(f"[SCENARIO] {name} FAILED: {e}")
        element = e.element if isinstance(e, WaitTimeoutError) else None
        artifacts = _capture(capture, f"{name}_failure", highlight=element)
        return build_result(name, "FAIL", "FAILED_ASSERTION", str(e), time.monotonic() - started, artifacts)
    except Exception as e:
        # ElementNotFoundError, adb errors and anything unexpected: this
        # scenario is broken, the rest of the suite still runs.
        logging.info(f"[SCENARIO] {name} ERROR: {type(e).__name__}: {e}")
        logging.debug(traceback.format_exc())
        artifacts = _capture(capture, f"{name}_error")
        return build_result(name, "ERROR", "FAILED_STEP", f"{type(e).__name__}: {e}", time.monotonic() - started, artifacts)

    notes = " -> ".join(ctx.navigator.history) if ctx else ""
    return build_result(name, "PASS", "", notes, time.monotonic() - started, {})


def run_suite(names=None):
    """Run scenarios (all, or the named ones) and return (run_dir, results)."""
    settings = get_settings()
    if settings.verbose_logs:
        logging.getLogger().setLevel(logging.DEBUG)

    logging.info("=== Browser Search UI Tests ===")
    logging.info(f"Time: {datetime.now().isoformat(timespec='seconds')}")
    logging.info(f"Package: {settings.package}")

    scenarios = [get_scenario(n) for n in names] if names else list(SCENARIOS)

    device = AndroidDevice(serial=settings.serial)
    if not device.is_connected():
        raise RuntimeError("No Android device attached (adb get-state did not report 'device')")

    run_dir = os.path.join(settings.runs_dir, datetime.now().strftime("%Y%m%d_%H%M%S"))
    os.makedirs(run_dir, exist_ok=True)

    results = []
    log_path = os.path.join(run_dir, "results.jsonl")
    with open(log_path, "w", encoding="utf-8") as f:
        for s in scenarios:
            logging.info(f"\n--- Running {s['name']} ---")
            r = run_scenario(s, device, settings, run_dir)
            logging.info(f"Result: {r['outcome']} ({r['duration_s']}s)")
            results.append(r)
            # One line per finished scenario, so an aborted run keeps its results
            f.write(json.dumps(r, ensure_ascii=False) + "\n")
            f.flush()

    passed = sum(1 for r in results if r["outcome"] == "PASS")
    logging.info(f"\nDone. {passed}/{len(results)} passed. Artifacts + results saved under: {run_dir}")
    return run_dir, results


def run_one(name: str):
    """Run a single scenario and return (run_dir, result)."""
    run_dir, results = run_suite([name])
    return run_dir, results[0] if results else None


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    _, results = run_suite(argv or None)
    return 0 if all(r["outcome"] == "PASS" for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
