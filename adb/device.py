import logging
import re
import subprocess
import time
from pathlib import Path
from typing import Optional

# Name of the adb executable (assumes adb is on PATH)
ADB = "adb"

ADB_TEXT_KW = dict(text=True, encoding="utf-8", errors="ignore")

KEYCODE_BACK = 4
KEYCODE_ENTER = 66

# Characters `adb shell input text` hands to the device shell unescaped.
_SHELL_SPECIAL = re.compile(r"([\\'\"`$&|;<>()*?!#~])")


def escape_input_text(text: str) -> str:
    """Make text safe for `adb shell input text`.

    Spaces must be sent as %s; shell metacharacters need a backslash or the
    device shell eats them.
    """
    safe = _SHELL_SPECIAL.sub(r"\\\1", text)
    return safe.replace(" ", "%s")


def split_input_text(text: str) -> list[str]:
    """Break text wherever a literal "%s" occurs.

    `input text` turns every %s into a space and has no escape for it, so
    the "%" and the "s" have to go out in separate commands.
    """
    return [chunk for chunk in re.split(r"(?<=%)(?=s)", text) if chunk]


class AndroidDevice:
    """Very small wrapper around adb.

    The class stays dumb on purpose:
    - It *only* does actions (tap, type, long press, dump, etc.)
    - It does NOT decide what to tap or whether a screen is correct
    Element lookup lives in uitest.elements, assertions in uitest.waits.
    """

    def __init__(self, adb: str = ADB, serial: Optional[str] = None):
        self.adb = adb
        self.serial = serial

    def _base(self) -> list[str]:
        if self.serial:
            return [self.adb, "-s", self.serial]
        return [self.adb]

    def _run(self, args: list[str], check: bool = True):
        cmd = self._base() + args
        logging.debug(f"[ADB] {' '.join(cmd)}")
        return subprocess.run(cmd, check=check)

    def _run_capture(self, args: list[str], check: bool = True, timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        """Run a command and capture stdout/stderr.

        Used where the output needs parsing (launcher activity, dumps, state).
        For plain input actions `_run` is enough.
        """
        cmd = self._base() + args
        logging.debug(f"[ADB] {' '.join(cmd)}")
        return subprocess.run(cmd, check=check, capture_output=True, timeout=timeout, **ADB_TEXT_KW)

    def is_connected(self) -> bool:
        try:
            proc = self._run_capture(["get-state"], check=False, timeout=5)
        except (OSError, subprocess.TimeoutExpired):
            return False
        return proc.returncode == 0 and (proc.stdout or "").strip() == "device"

    # App lifecycle helpers

    def launch_app(self, package: str):
        """Launch an app reliably.

        `adb shell monkey` is convenient, but on some builds it fails with
        "No activities found to run" even when the package is installed.

        Strategy:
        1) Try monkey (fast).
        2) If it fails, resolve the LAUNCHER activity via `cmd package resolve-activity`
           and start it explicitly with `am start`.
        """
        proc = self._run_capture([
            "shell", "monkey",
            "-p", package,
            "-c", "android.intent.category.LAUNCHER",
            "1",
        ], check=False)
        out = (proc.stdout or "") + (proc.stderr or "")
        if proc.returncode == 0 and "No activities found" not in out:
            time.sleep(2)
            return

        resolved = self._run_capture([
            "shell", "cmd", "package", "resolve-activity", "--brief",
            "-c", "android.intent.category.LAUNCHER",
            package,
        ], check=False)

        # Typical output ends with a line like: org.mozilla.firefox/.App
        lines = ((resolved.stdout or "") + "\n" + (resolved.stderr or "")).splitlines()
        target = None
        for line in lines:
            line = line.strip()
            if "/" in line and package in line:
                target = line
                break

        if not target:
            raise RuntimeError(
                f"Failed to launch {package}. Could not resolve launcher activity. Output: {lines[-10:]}"
            )

        self._run([
            "shell", "am", "start", "-W",
            "-n", target,
            "-a", "android.intent.action.MAIN",
            "-c", "android.intent.category.LAUNCHER",
        ])
        time.sleep(2)

    def force_stop(self, package: str):
        self._run(["shell", "am", "force-stop", package])
        time.sleep(0.5)

    def pm_clear(self, package: str):
        # Wipes app data, so one-time prompts show up again.
        self._run(["shell", "pm", "clear", package])
        time.sleep(1.0)

    def open_url(self, package: str, url: str):
        self._run([
            "shell", "am", "start", "-W",
            "-a", "android.intent.action.VIEW",
            "-d", url,
            package,
        ])

    # Basic input

    def tap(self, x: int, y: int):
        self._run(["shell", "input", "tap", str(x), str(y)])
        time.sleep(0.4)

    def long_press(self, x: int, y: int, duration_ms: int = 1500):
        # A swipe that doesn't move is a long press.
        self.swipe(x, y, x, y, duration_ms=duration_ms)

    def swipe(self, x1: int, y1: int, x2: int, y2: int, duration_ms: int = 350):
        self._run(["shell", "input", "swipe", str(x1), str(y1), str(x2), str(y2), str(duration_ms)])
        time.sleep(0.5)

    def type_text(self, text: str):
        for chunk in split_input_text(text):
            self._run(["shell", "input", "text", escape_input_text(chunk)])
            time.sleep(0.4)

    def key(self, keycode: int):
        self._run(["shell", "input", "keyevent", str(keycode)])
        time.sleep(0.3)

    def back(self):
        self.key(KEYCODE_BACK)

    def enter(self):
        self.key(KEYCODE_ENTER)

    def sleep_ms(self, ms: int):
        time.sleep(ms / 1000.0)

    # Screens + UI hierarchy

    def screenshot(self, path_or_name: str) -> Path:
        """Take a screenshot.

        If you pass:
        - "something.png" => it saves exactly there (relative path ok)
        - "something"     => it saves to runs/screenshots/something.png
        """
        p = Path(path_or_name)
        if p.suffix.lower() != ".png":
            p = Path("runs") / "screenshots" / f"{path_or_name}.png"

        p.parent.mkdir(parents=True, exist_ok=True)

        # exec-out avoids line ending corruption
        with open(p, "wb") as f:
            subprocess.run(self._base() + ["exec-out", "screencap", "-p"], stdout=f, check=True)

        return p

    def ui_dump(self) -> str:
        remote = "/sdcard/window_dump.xml"
        try:
            self._run_capture(["shell", "uiautomator", "dump", remote], check=False, timeout=5)
            p = self._run_capture(["shell", "cat", remote], check=False, timeout=5)
            return (p.stdout or "").strip()
        except subprocess.TimeoutExpired:
            logging.debug("[ADB] uiautomator dump timed out")
            return ""

    def current_focus(self) -> str:
        try:
            proc = self._run_capture(["shell", "dumpsys", "window"], check=False, timeout=5)
        except subprocess.TimeoutExpired:
            return ""
        text = (proc.stdout or "") + (proc.stderr or "")
        for line in text.splitlines():
            if "mCurrentFocus" in line:
                return line.strip()
        return ""
