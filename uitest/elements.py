"""
Element lookup over uiautomator hierarchy dumps.

Queries read like the platform test APIs the browser team is used to:

    app.text_fields["address"].type_text("foobar")
    app.tables["SiteTable"].buttons["foobar2000.org"].exists

An Element is only a description (category + key + optional parent scope).
It is resolved against a fresh dump every time it is used, so handles can be
kept around across screen changes.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Tuple

from uitest.config import Settings, get_settings

if TYPE_CHECKING:
    from adb.device import AndroidDevice

__all__ = [
    "UiNode",
    "ElementNotFoundError",
    "parse_bounds",
    "parse_hierarchy",
    "node_value",
    "App",
    "Element",
    "ElementQuery",
]

_BOUNDS_RE = re.compile(r"\[(-?\d+),(-?\d+)\]\[(-?\d+),(-?\d+)\]")


class ElementNotFoundError(Exception):
    """Raised when an action targets an element that is not on screen."""


@dataclass
class UiNode:
    cls: str
    text: str = ""
    desc: str = ""
    res_id: str = ""
    hint: str = ""
    bounds: Tuple[int, int, int, int] = (0, 0, 0, 0)
    clickable: bool = False
    focused: bool = False
    checkable: bool = False
    checked: bool = False
    enabled: bool = True
    selected: bool = False
    parent: Optional["UiNode"] = field(default=None, repr=False, compare=False)
    children: list["UiNode"] = field(default_factory=list, repr=False, compare=False)

    @property
    def short_class(self) -> str:
        return self.cls.rsplit(".", 1)[-1]

    @property
    def short_id(self) -> str:
        # "org.mozilla.firefox:id/url" -> "url"
        return self.res_id.split(":id/", 1)[-1] if self.res_id else ""

    @property
    def center(self) -> Tuple[int, int]:
        x1, y1, x2, y2 = self.bounds
        return (x1 + x2) // 2, (y1 + y2) // 2

    def ancestors(self) -> Iterator["UiNode"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def descendants(self) -> Iterator["UiNode"]:
        for child in self.children:
            yield child
            yield from child.descendants()


def parse_bounds(bounds: str) -> Tuple[int, int, int, int]:
    """Convert "[x1,y1][x2,y2]" into (x1, y1, x2, y2)."""
    m = _BOUNDS_RE.match((bounds or "").strip())
    if not m:
        raise ValueError(f"Bad bounds format: {bounds!r}")
    x1, y1, x2, y2 = map(int, m.groups())
    return x1, y1, x2, y2


def _node_from_element(el: ET.Element, parent: Optional[UiNode]) -> UiNode:
    a = el.attrib
    try:
        bounds = parse_bounds(a.get("bounds", ""))
    except ValueError:
        bounds = (0, 0, 0, 0)
    return UiNode(
        cls=(a.get("class") or "").strip(),
        text=(a.get("text") or "").strip(),
        desc=(a.get("content-desc") or "").strip(),
        res_id=(a.get("resource-id") or "").strip(),
        hint=(a.get("hint") or "").strip(),
        bounds=bounds,
        clickable=a.get("clickable") == "true",
        focused=a.get("focused") == "true",
        checkable=a.get("checkable") == "true",
        checked=a.get("checked") == "true",
        enabled=a.get("enabled", "true") != "false",
        selected=a.get("selected") == "true",
        parent=parent,
    )


def parse_hierarchy(xml_text: str) -> list[UiNode]:
    """Parse a uiautomator dump into nodes, in document order.

    Blank or garbled dumps (uiautomator sometimes returns half a file while
    the screen animates) give an empty list rather than an exception: to the
    waits that simply means "nothing on screen yet".
    """
    if not xml_text or "<node" not in xml_text:
        return []
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError:
        logging.debug("[UI] hierarchy dump did not parse")
        return []

    nodes: list[UiNode] = []

    def walk(el: ET.Element, parent: Optional[UiNode]):
        for child in el:
            if child.tag != "node":
                continue
            node = _node_from_element(child, parent)
            if parent is not None:
                parent.children.append(node)
            nodes.append(node)
            walk(child, node)

    walk(root, None)
    return nodes


# Category matchers (Android class names -> query categories)

_TEXT_FIELD_SUFFIXES = ("EditText", "AutoCompleteTextView")
_SWITCH_CLASSES = {"Switch", "SwitchCompat", "SwitchMaterial", "CompoundButton", "CheckBox", "ToggleButton"}
_TABLE_CLASSES = {"RecyclerView", "ListView", "GridView"}


def _is_text_field(node: UiNode) -> bool:
    return node.short_class.endswith(_TEXT_FIELD_SUFFIXES)


def _is_switch(node: UiNode) -> bool:
    return node.short_class in _SWITCH_CLASSES


def _is_table(node: UiNode) -> bool:
    return node.short_class in _TABLE_CLASSES


def _is_button(node: UiNode) -> bool:
    if _is_switch(node) or _is_text_field(node):
        return False
    if node.short_class.endswith("Button"):
        return True
    return node.clickable and bool(node.text or node.desc)


def _is_static_text(node: UiNode) -> bool:
    return node.short_class.endswith("TextView") and not _is_text_field(node)


def _is_cell(node: UiNode) -> bool:
    return node.parent is not None and _is_table(node.parent)


def _is_menu_item(node: UiNode) -> bool:
    if "MenuItem" in node.cls or "floating_toolbar_menu_item" in node.res_id:
        return True
    return any("floating_toolbar" in a.res_id or "popup" in a.res_id.lower() for a in node.ancestors()) and bool(node.text or node.desc)


CATEGORIES: dict[str, Callable[[UiNode], bool]] = {
    "text_fields": _is_text_field,
    "buttons": _is_button,
    "static_texts": _is_static_text,
    "tables": _is_table,
    "cells": _is_cell,
    "switches": _is_switch,
    "menu_items": _is_menu_item,
}


def _row_of(node: UiNode) -> Optional[UiNode]:
    """The list row a node sits in, or its parent when it isn't in a list."""
    for a in node.ancestors():
        if _is_cell(a):
            return a
    return node.parent


def _keys(node: UiNode, category: str) -> set[str]:
    keys = {node.res_id, node.short_id, node.desc, node.text}
    if category == "switches":
        # Settings switches carry no label of their own; the title is a
        # sibling TextView in the same row.
        row = _row_of(node)
        if row is not None:
            keys.update(d.text for d in row.descendants() if _is_static_text(d))
    keys.discard("")
    return keys


def node_value(node: UiNode, category: str) -> str:
    """What a test sees as the element's value."""
    if category == "switches" or node.checkable:
        return "1" if node.checked else "0"
    if _is_text_field(node):
        # Empty fields report their placeholder as text.
        if node.hint and node.text == node.hint:
            return ""
        return node.text
    return node.text or node.desc


class _Queryable:
    """Category accessors shared by the app root and scoped elements."""

    def _query(self, category: str) -> "ElementQuery":
        raise NotImplementedError

    @property
    def text_fields(self) -> "ElementQuery":
        return self._query("text_fields")

    @property
    def buttons(self) -> "ElementQuery":
        return self._query("buttons")

    @property
    def static_texts(self) -> "ElementQuery":
        return self._query("static_texts")

    @property
    def tables(self) -> "ElementQuery":
        return self._query("tables")

    @property
    def cells(self) -> "ElementQuery":
        return self._query("cells")

    @property
    def switches(self) -> "ElementQuery":
        return self._query("switches")

    @property
    def menu_items(self) -> "ElementQuery":
        return self._query("menu_items")


class ElementQuery:
    def __init__(self, app: "App", category: str, scope: Optional["Element"] = None):
        if category not in CATEGORIES:
            raise ValueError(f"Unknown element category: {category}")
        self.app = app
        self.category = category
        self.scope = scope

    def __getitem__(self, key: str) -> "Element":
        return Element(self.app, self.category, key, self.scope)

    def __repr__(self) -> str:
        prefix = f"{self.scope!r}." if self.scope is not None else ""
        return f"{prefix}{self.category}"

    def matching(self, nodes: list[UiNode]) -> list[UiNode]:
        if self.scope is not None:
            root = self.scope.find(nodes)
            if root is None:
                return []
            pool = list(root.descendants())
        else:
            pool = nodes
        matcher = CATEGORIES[self.category]
        return [n for n in pool if matcher(n)]

    def all(self) -> list[UiNode]:
        return self.matching(self.app.snapshot())

    @property
    def count(self) -> int:
        return len(self.all())


class Element(_Queryable):
    def __init__(self, app: "App", category: str, key: str, scope: Optional["Element"] = None):
        self.app = app
        self.category = category
        self.key = key
        self.scope = scope

    def __repr__(self) -> str:
        prefix = f"{self.scope!r}." if self.scope is not None else ""
        return f'{prefix}{self.category}["{self.key}"]'

    def _query(self, category: str) -> ElementQuery:
        return ElementQuery(self.app, category, scope=self)

    def find(self, nodes: Optional[list[UiNode]] = None) -> Optional[UiNode]:
        """First matching node in `nodes` (a fresh dump when omitted)."""
        if nodes is None:
            nodes = self.app.snapshot()
        for node in ElementQuery(self.app, self.category, self.scope).matching(nodes):
            if self.key in _keys(node, self.category):
                return node
        return None

    def resolve(self) -> UiNode:
        node = self.find()
        if node is None:
            raise ElementNotFoundError(f"{self!r} not found on screen")
        return node

    @property
    def exists(self) -> bool:
        return self.find() is not None

    @property
    def value(self) -> str:
        return node_value(self.resolve(), self.category)

    @property
    def label(self) -> str:
        node = self.resolve()
        return node.desc or node.text

    @property
    def is_checked(self) -> bool:
        return self.resolve().checked

    def tap(self):
        node = self.resolve()
        logging.debug(f"[UI] tap {self!r} at {node.center}")
        self.app.device.tap(*node.center)

    def press(self, duration_s: Optional[float] = None):
        node = self.resolve()
        if duration_s is None:
            duration_ms = self.app.settings.long_press_ms
        else:
            duration_ms = int(duration_s * 1000)
        logging.debug(f"[UI] long press {self!r} for {duration_ms}ms")
        self.app.device.long_press(*node.center, duration_ms=duration_ms)

    def type_text(self, text: str):
        node = self.resolve()
        if not node.focused:
            self.app.device.tap(*node.center)
        self.app.type_text(text)


class App(_Queryable):
    """Root of all element queries for the app under test."""

    def __init__(self, device: "AndroidDevice", settings: Optional[Settings] = None):
        if settings is None:
            settings = get_settings()
        self.device = device
        self.settings = settings

    def _query(self, category: str) -> ElementQuery:
        return ElementQuery(self, category)

    def snapshot(self) -> list[UiNode]:
        return parse_hierarchy(self.device.ui_dump())

    def type_text(self, text: str):
        """Type into whatever has focus; line breaks become Enter."""
        for chunk in re.split(r"(\r\n|\r|\n)", text):
            if not chunk:
                continue
            if chunk in ("\r\n", "\r", "\n"):
                self.device.enter()
            else:
                self.device.type_text(chunk)

    def press_back(self):
        self.device.back()
