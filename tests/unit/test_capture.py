"""Failure artifacts and screenshot comparisons."""

from __future__ import annotations

import subprocess

from PIL import Image

from tests.fakes import FakeBrowser, FakeDevice, write_png
from uitest.capture import (
    FailureCapture,
    highlight_bounds,
    screen_difference,
    screenshot_is_blank,
    wait_for_screen_stable,
)
from uitest.elements import App


def test_blank_detection(tmp_path):
    blank = tmp_path / "blank.png"
    busy = tmp_path / "busy.png"
    write_png(blank, blank=True)
    write_png(busy)
    assert screenshot_is_blank(str(blank))
    assert not screenshot_is_blank(str(busy))


def test_screen_difference(tmp_path):
    a, b, c = tmp_path / "a.png", tmp_path / "b.png", tmp_path / "c.png"
    write_png(a)
    write_png(b)
    write_png(c, color=(0, 0, 0))
    assert screen_difference(str(a), str(b)) == 0.0
    assert screen_difference(str(a), str(c)) > 10
    Image.new("RGB", (10, 10)).save(c)
    assert screen_difference(str(a), str(c)) == 255.0


def test_highlight_draws_outline(tmp_path):
    src, dst = tmp_path / "src.png", tmp_path / "dst.png"
    write_png(src, blank=True)
    highlight_bounds(str(src), str(dst), (10, 10, 50, 50))
    img = Image.open(dst).convert("RGB")
    assert img.getpixel((10, 30)) == (255, 0, 0)
    assert img.getpixel((30, 30)) == (240, 240, 240)


def test_capture_writes_screenshot_dump_and_highlight(tmp_path, fast_settings):
    browser = FakeBrowser(first_run=False)
    app = App(browser, fast_settings)
    capture = FailureCapture(browser, str(tmp_path / "run"))
    artifacts = capture.capture("prompt_failure", highlight=app.text_fields["url"])
    assert set(artifacts) == {"screenshot", "hierarchy", "highlight"}
    assert (tmp_path / "run" / "prompt_failure.png").exists()
    assert "TabToolbar.menuButton" in (tmp_path / "run" / "prompt_failure.xml").read_text()
    assert artifacts["highlight"].endswith("prompt_failure_highlight.png")


def test_capture_survives_screenshot_failure(tmp_path):
    class NoScreen(FakeDevice):
        def screenshot(self, path):
            raise subprocess.CalledProcessError(1, ["adb", "exec-out"])

    artifacts = FailureCapture(NoScreen(), str(tmp_path)).capture("broken")
    assert artifacts == {}


def test_screen_stable(tmp_path):
    device = FakeDevice()
    assert wait_for_screen_stable(device, str(tmp_path), timeout=1, poll=0.01)

    class Animating(FakeDevice):
        frame = 0

        def screenshot(self, path):
            self.frame += 1
            write_png(path, color=(self.frame * 40 % 256, 0, 0))

    assert not wait_for_screen_stable(Animating(), str(tmp_path), timeout=0.1, poll=0.01)
