"""
Failure artifacts: screenshot + hierarchy dump, with the offending element
outlined when there is one.

Capturing is best effort. A device that has gone away must not hide the
original test failure behind a capture error.
"""

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from uitest.elements import Element, parse_hierarchy

__all__ = [
    "FailureCapture",
    "highlight_bounds",
    "screenshot_is_blank",
    "screen_difference",
    "wait_for_screen_stable",
]


def highlight_bounds(src: str, dst: str, bounds: Tuple[int, int, int, int], color=(255, 0, 0), width: int = 6) -> str:
    img = Image.open(src).convert("RGB")
    draw = ImageDraw.Draw(img)
    x1, y1, x2, y2 = bounds
    draw.rectangle((x1, y1, x2, y2), outline=color, width=width)
    img.save(dst)
    return dst


def screenshot_is_blank(path: str, threshold: float = 2.0) -> bool:
    """A near-uniform frame usually means the app hadn't drawn yet (or crashed)."""
    arr = np.asarray(Image.open(path).convert("L"), dtype=np.float32)
    return float(arr.std()) < threshold


def screen_difference(path_a: str, path_b: str) -> float:
    """Mean absolute per-pixel difference (0-255). Different sizes count as totally different."""
    a = np.asarray(Image.open(path_a).convert("L"), dtype=np.float32)
    b = np.asarray(Image.open(path_b).convert("L"), dtype=np.float32)
    if a.shape != b.shape:
        return 255.0
    return float(np.abs(a - b).mean())


def wait_for_screen_stable(device, work_dir: str, timeout: float = 6.0, poll: float = 0.5, threshold: float = 1.0) -> bool:
    """Wait until two consecutive screenshots (nearly) match.

    Used after launching the app, where the hierarchy dump can look complete
    while the first frame is still animating in.
    """
    os.makedirs(work_dir, exist_ok=True)
    shots = [os.path.join(work_dir, "_settle_a.png"), os.path.join(work_dir, "_settle_b.png")]
    deadline = time.monotonic() + timeout
    device.screenshot(shots[0])
    i = 1
    while time.monotonic() < deadline:
        time.sleep(poll)
        device.screenshot(shots[i % 2])
        diff = screen_difference(shots[0], shots[1])
        if diff < threshold:
            logging.debug(f"[CAPTURE] screen stable (diff={diff:.2f})")
            return True
        i += 1
    logging.debug("[CAPTURE] screen still changing after %.1fs", timeout)
    return False


class FailureCapture:
    """Writes <name>.png / <name>.xml (and <name>_highlight.png) into run_dir."""

    def __init__(self, device, run_dir: str):
        self.device = device
        self.run_dir = run_dir
        os.makedirs(run_dir, exist_ok=True)

    def capture(self, name: str, highlight: Optional[Element] = None) -> dict:
        artifacts: dict = {}
        png = os.path.join(self.run_dir, f"{name}.png")
        try:
            self.device.screenshot(png)
            artifacts["screenshot"] = png
        except (OSError, subprocess.CalledProcessError) as e:
            logging.warning(f"[CAPTURE] screenshot failed: {e}")
            png = None

        xml_text = self.device.ui_dump() or ""
        if xml_text:
            xml_path = os.path.join(self.run_dir, f"{name}.xml")
            Path(xml_path).write_text(xml_text, encoding="utf-8")
            artifacts["hierarchy"] = xml_path

        if png is None:
            return artifacts

        if screenshot_is_blank(png):
            logging.warning(f"[CAPTURE] {png} looks blank")
            artifacts["blank"] = True

        if highlight is not None and xml_text:
            node = highlight.find(parse_hierarchy(xml_text))
            if node is not None:
                dst = os.path.join(self.run_dir, f"{name}_highlight.png")
                artifacts["highlight"] = highlight_bounds(png, dst, node.bounds)

        logging.info(f"[CAPTURE] {name}: {', '.join(sorted(k for k in artifacts if k != 'blank'))}")
        return artifacts
