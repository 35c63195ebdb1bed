"""
Screen map of the browser under test.

Identifiers are the resource-id names (or content descriptions) the Android
build exposes for testing.
"""

import logging

from uitest.elements import App
from uitest.navigator import ScreenGraph
from uitest.waits import wait_for_existence, wait_until, WaitTimeoutError

FIRST_RUN = "FirstRun"
NEW_TAB_SCREEN = "NewTabScreen"
URL_BAR_OPEN = "URLBarOpen"
BROWSER_TAB = "BrowserTab"
BROWSER_TAB_MENU = "BrowserTabMenu"
SETTINGS_SCREEN = "SettingsScreen"
SEARCH_SETTINGS = "SearchSettings"
SEARCH_ENGINE_LIST = "SearchEngineList"

URL_FIELD = "url"
ADDRESS_FIELD = "address"
SITE_TABLE = "SiteTable"
BACK_BUTTON = "TabToolbar.backButton"
MENU_BUTTON = "TabToolbar.menuButton"
CANCEL_BUTTON = "Cancel"
SETTINGS_ITEM = "Settings"
SEARCH_ITEM = "Search"
DEFAULT_ENGINE_ROW = "Default search engine"
SHOW_SUGGESTIONS_SWITCH = "Show Search Suggestions"

FIRST_RUN_BUTTONS = ("Start browsing", "Skip", "Not now")


def create_screen_graph(app: App) -> ScreenGraph:
    graph = ScreenGraph()
    url = app.text_fields[URL_FIELD]
    address = app.text_fields[ADDRESS_FIELD]
    menu = app.buttons[MENU_BUTTON]

    def first_run(s):
        s.tap(app.buttons[FIRST_RUN_BUTTONS[0]], NEW_TAB_SCREEN)

    def new_tab(s):
        s.tap(url, URL_BAR_OPEN)
        s.tap(menu, BROWSER_TAB_MENU)
        s.on_enter(url)

    def url_bar_open(s):
        s.tap(app.buttons[CANCEL_BUTTON], NEW_TAB_SCREEN)
        s.on_enter(address)

    # Back from the menu and settings returns to whatever opened them. The
    # graph only opens them from the new tab screen, so a page goes there first.
    def browser_tab(s):
        s.tap(url, URL_BAR_OPEN)
        s.tap(app.buttons[BACK_BUTTON], NEW_TAB_SCREEN)

    def tab_menu(s):
        s.tap(app.static_texts[SETTINGS_ITEM], SETTINGS_SCREEN)
        s.back_action(app.press_back, NEW_TAB_SCREEN)

    def settings(s):
        s.tap(app.static_texts[SEARCH_ITEM], SEARCH_SETTINGS)
        s.back_action(app.press_back, NEW_TAB_SCREEN)

    def search_settings(s):
        s.tap(app.static_texts[DEFAULT_ENGINE_ROW], SEARCH_ENGINE_LIST)
        s.back_action(app.press_back, SETTINGS_SCREEN)
        s.on_enter(app.switches[SHOW_SUGGESTIONS_SWITCH])

    def engine_list(s):
        s.back_action(app.press_back, SEARCH_SETTINGS)

    graph.add_screen_state(FIRST_RUN, first_run)
    graph.add_screen_state(NEW_TAB_SCREEN, new_tab)
    graph.add_screen_state(URL_BAR_OPEN, url_bar_open)
    graph.add_screen_state(BROWSER_TAB, browser_tab)
    graph.add_screen_state(BROWSER_TAB_MENU, tab_menu)
    graph.add_screen_state(SETTINGS_SCREEN, settings)
    graph.add_screen_state(SEARCH_SETTINGS, search_settings)
    graph.add_screen_state(SEARCH_ENGINE_LIST, engine_list)
    graph.set_url_entry(URL_BAR_OPEN, address, BROWSER_TAB)
    return graph


def dismiss_first_run_ui(app: App, timeout: float = 3.0) -> bool:
    """Skip onboarding if the fresh profile shows it. Returns True if it did."""
    buttons = [app.buttons[label] for label in FIRST_RUN_BUTTONS]

    def visible_button():
        nodes = app.snapshot()
        for b in buttons:
            if b.find(nodes) is not None:
                return b
        return None

    try:
        button = wait_until(visible_button, timeout=timeout, message="no first run UI")
    except WaitTimeoutError:
        return False
    logging.debug(f"[NAV] dismissing first run UI via {button!r}")
    button.tap()
    wait_for_existence(app.text_fields[URL_FIELD])
    return True


def type_on_search_bar(app: App, text: str):
    app.text_fields[URL_FIELD].tap()
    address = app.text_fields[ADDRESS_FIELD]
    wait_for_existence(address)
    address.type_text(text)
