"""
Screen graph + navigator.

The graph is declared once per app: each screen lists the actions that leave
it and where they lead. A Navigator walks the shortest path between its
current screen and the one a test asks for.

    graph = ScreenGraph()
    graph.add_screen_state(NEW_TAB_SCREEN, lambda s: s.tap(app.text_fields["url"], URL_BAR_OPEN))
    nav = graph.navigator(NEW_TAB_SCREEN)
    nav.goto(URL_BAR_OPEN)
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from uitest.elements import Element
from uitest.waits import wait_for_existence

__all__ = ["NavigationError", "Transition", "ScreenState", "ScreenGraph", "Navigator"]


class NavigationError(AssertionError):
    """Unknown screen, or no route between two screens."""


@dataclass
class Transition:
    source: str
    destination: str
    action: Callable[[], None]
    # Control the action taps; the navigator waits for it before acting.
    element: Optional[Element] = None
    label: str = ""


class ScreenState:
    """Builder handed to each screen declaration."""

    def __init__(self, name: str):
        self.name = name
        self.transitions: list[Transition] = []
        self.marker: Optional[Element] = None

    def _add(self, destination: str, action: Callable[[], None], element: Optional[Element], label: str):
        self.transitions.append(Transition(self.name, destination, action, element, label))

    def tap(self, element: Element, forward_to: str):
        self._add(forward_to, element.tap, element, f"tap {element!r}")

    def press(self, element: Element, forward_to: str, duration_s: Optional[float] = None):
        self._add(forward_to, lambda: element.press(duration_s), element, f"press {element!r}")

    def back_action(self, back: Callable[[], None], forward_to: str):
        self._add(forward_to, back, None, "back")

    def gesture(self, forward_to: str, action: Callable[[], None], label: str = "gesture"):
        self._add(forward_to, action, None, label)

    def on_enter(self, marker: Element):
        """Element that must be visible before the screen counts as reached."""
        self.marker = marker


class ScreenGraph:
    def __init__(self):
        self._states: dict[str, ScreenState] = {}
        self._url_entry: Optional[tuple[str, Element, str]] = None

    def __contains__(self, name: str) -> bool:
        return name in self._states

    @property
    def screens(self) -> list[str]:
        return list(self._states)

    def add_screen_state(self, name: str, builder: Optional[Callable[[ScreenState], None]] = None) -> ScreenState:
        if name in self._states:
            raise ValueError(f"Screen already declared: {name}")
        state = ScreenState(name)
        if builder is not None:
            builder(state)
        self._states[name] = state
        return state

    def state(self, name: str) -> ScreenState:
        try:
            return self._states[name]
        except KeyError:
            raise NavigationError(f"Unknown screen: {name}") from None

    def set_url_entry(self, screen: str, field: Element, loaded_screen: str):
        """Where URLs are typed, and which screen a loaded page counts as."""
        self._url_entry = (screen, field, loaded_screen)

    @property
    def url_entry(self) -> Optional[tuple[str, Element, str]]:
        return self._url_entry

    def validate(self):
        for state in self._states.values():
            for t in state.transitions:
                if t.destination not in self._states:
                    raise ValueError(f"{state.name} has a transition to undeclared screen {t.destination}")

    def shortest_path(self, source: str, destination: str) -> list[Transition]:
        self.state(source)
        self.state(destination)
        if source == destination:
            return []

        # Plain BFS; the graphs here are a dozen nodes.
        came_from: dict[str, Transition] = {}
        seen = {source}
        queue = deque([source])
        while queue:
            current = queue.popleft()
            for t in self._states[current].transitions:
                if t.destination in seen:
                    continue
                seen.add(t.destination)
                came_from[t.destination] = t
                if t.destination == destination:
                    path = [t]
                    while path[0].source != source:
                        path.insert(0, came_from[path[0].source])
                    return path
                queue.append(t.destination)

        raise NavigationError(f"No route from {source} to {destination}")

    def navigator(self, start: str) -> "Navigator":
        self.validate()
        return Navigator(self, start)


class Navigator:
    def __init__(self, graph: ScreenGraph, start: str):
        graph.state(start)
        self.graph = graph
        self.current_screen = start
        self.history: list[str] = [start]

    def _perform(self, t: Transition):
        logging.debug(f"[NAV] {t.source} -> {t.destination} ({t.label})")
        if t.element is not None:
            wait_for_existence(t.element)
        t.action()
        marker = self.graph.state(t.destination).marker
        if marker is not None:
            wait_for_existence(marker)
        self.current_screen = t.destination
        self.history.append(t.destination)

    def goto(self, screen: str):
        for t in self.graph.shortest_path(self.current_screen, screen):
            self._perform(t)

    def now_at(self, screen: str):
        """Resync after the test moved screens by hand."""
        self.graph.state(screen)
        if screen != self.current_screen:
            logging.debug(f"[NAV] now at {screen} (was {self.current_screen})")
            self.current_screen = screen
            self.history.append(screen)

    def open_new_url(self, url: str):
        entry = self.graph.url_entry
        if entry is None:
            raise NavigationError("Screen graph has no URL entry screen")
        screen, field, loaded_screen = entry
        self.goto(screen)
        wait_for_existence(field)
        field.type_text(url + "\r")
        self.now_at(loaded_screen)
