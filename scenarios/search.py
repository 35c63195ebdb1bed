"""
Search bar scenarios: the one-time suggestion prompt, remembered suggestion
preference, URL-like input, clipboard paste and default search engine.

Every scenario expects a fresh profile sitting on the new tab screen.
"""

from dataclasses import dataclass

from uitest.browser_screens import (
    ADDRESS_FIELD,
    BACK_BUTTON,
    CANCEL_BUTTON,
    NEW_TAB_SCREEN,
    SEARCH_ENGINE_LIST,
    SEARCH_SETTINGS,
    SHOW_SUGGESTIONS_SWITCH,
    SITE_TABLE,
    URL_FIELD,
    type_on_search_bar,
)
from uitest.config import Settings
from uitest.elements import App
from uitest.navigator import Navigator
from uitest.waits import wait_for_existence, wait_for_no_existence, wait_for_value_contains

LABEL_PROMPT = "Turn on search suggestions?"
SUGGESTED_SITE = "foobar2000.org"
SUGGESTED_AFTER_SPACE = "foobar burn cd"

MENU_SELECT_ALL = "Select all"
MENU_COPY = "Copy"
MENU_PASTE = "Paste"

DEFAULT_ENGINE = "Yahoo"
SEARCH_ENGINES = ["Bing", "DuckDuckGo", "Google", "Twitter", "Wikipedia", "Amazon.com", "Yahoo"]


@dataclass
class ScenarioContext:
    app: App
    navigator: Navigator
    settings: Settings


def _suggestion(app: App, label: str = SUGGESTED_SITE):
    return app.tables[SITE_TABLE].buttons[label]


def suggestions_on_off(ctx: ScenarioContext):
    ctx.navigator.goto(SEARCH_SETTINGS)
    ctx.app.switches[SHOW_SUGGESTIONS_SWITCH].tap()


def prompt_presence(ctx: ScenarioContext):
    app = ctx.app
    # Suggestions are off by default, so the prompt shows up
    type_on_search_bar(app, "foobar")
    wait_for_existence(app.static_texts[LABEL_PROMPT])
    wait_for_no_existence(_suggestion(app))

    app.buttons["Yes"].tap()
    wait_for_existence(_suggestion(app))

    # Choice is remembered, and the prompt is not asked twice
    app.buttons[CANCEL_BUTTON].tap()
    type_on_search_bar(app, "foobar")
    wait_for_existence(_suggestion(app))
    wait_for_no_existence(app.static_texts[LABEL_PROMPT])

    # Turn suggestions back off from settings
    app.buttons[CANCEL_BUTTON].tap()
    suggestions_on_off(ctx)
    ctx.navigator.goto(NEW_TAB_SCREEN)
    type_on_search_bar(app, "foobar")
    wait_for_no_existence(_suggestion(app))


def dismiss_prompt_presence(ctx: ScenarioContext):
    app = ctx.app
    type_on_search_bar(app, "foobar")
    wait_for_existence(app.static_texts[LABEL_PROMPT])

    app.buttons["No"].tap()
    wait_for_no_existence(_suggestion(app))

    # Saying No doesn't stop the user enabling suggestions later
    app.buttons[CANCEL_BUTTON].tap()
    suggestions_on_off(ctx)
    ctx.navigator.goto(NEW_TAB_SCREEN)
    type_on_search_bar(app, "foobar")
    wait_for_existence(_suggestion(app))


def no_suggestions_when_entering_url(ctx: ScenarioContext):
    """A "/" in the query means a URL: hide suggestions until a space and more text follow."""
    app = ctx.app
    type_on_search_bar(app, "foobar")
    wait_for_existence(app.static_texts[LABEL_PROMPT])
    wait_for_no_existence(_suggestion(app))

    app.buttons["Yes"].tap()
    wait_for_existence(_suggestion(app))

    address = app.text_fields[ADDRESS_FIELD]
    address.type_text("/")
    wait_for_no_existence(_suggestion(app))

    address.type_text(" b")
    wait_for_existence(_suggestion(app, SUGGESTED_AFTER_SPACE))


def copy_paste_complete(ctx: ScenarioContext):
    app = ctx.app
    address = app.text_fields[ADDRESS_FIELD]
    url = app.text_fields[URL_FIELD]

    type_on_search_bar(app, "www.mozilla.org")
    address.press()
    wait_for_existence(app.menu_items[MENU_SELECT_ALL])
    app.menu_items[MENU_SELECT_ALL].tap()
    wait_for_existence(app.menu_items[MENU_COPY])
    app.menu_items[MENU_COPY].tap()
    app.buttons[CANCEL_BUTTON].tap()

    url.tap()
    wait_for_existence(address)
    address.press()
    wait_for_existence(app.menu_items[MENU_PASTE])
    app.menu_items[MENU_PASTE].tap()

    # Pasted text goes through the same prompt flow as typed text
    wait_for_existence(app.static_texts[LABEL_PROMPT])
    app.type_text("\r")
    wait_for_value_contains(url, "https://www.mozilla.org/")

    # Back on the new tab, a prefix autocompletes from history
    app.buttons[BACK_BUTTON].tap()
    type_on_search_bar(app, "moz")
    wait_for_value_contains(address, "mozilla.org")
    value = address.value
    assert value == "mozilla.org/", f"autocompleted to {value!r}"


def change_search_engine(ctx: ScenarioContext, engine: str):
    app, navigator = ctx.app, ctx.navigator
    navigator.goto(SEARCH_ENGINE_LIST)
    app.static_texts[engine].tap()
    # Picking an engine pops back to search settings
    navigator.now_at(SEARCH_SETTINGS)

    navigator.open_new_url("foo")
    wait_for_value_contains(app.text_fields[URL_FIELD], engine.lower())

    app.buttons[BACK_BUTTON].tap()
    navigator.now_at(NEW_TAB_SCREEN)
    navigator.goto(SEARCH_SETTINGS)
    wait_for_existence(app.static_texts[engine])


def search_engine(ctx: ScenarioContext):
    ctx.navigator.goto(SEARCH_SETTINGS)
    assert ctx.app.static_texts[DEFAULT_ENGINE].exists, f"default search engine is not {DEFAULT_ENGINE}"

    for engine in SEARCH_ENGINES:
        change_search_engine(ctx, engine)


SCENARIOS = [
    {
        "name": "prompt_presence",
        "description": "Suggestion prompt appears once; Yes is remembered; the setting turns it off again.",
        "run": prompt_presence,
    },
    {
        "name": "dismiss_prompt_presence",
        "description": "Declining the prompt hides suggestions until the setting is toggled.",
        "run": dismiss_prompt_presence,
    },
    {
        "name": "no_suggestions_when_entering_url",
        "description": "A path separator suppresses suggestions; space plus text restores them.",
        "run": no_suggestions_when_entering_url,
    },
    {
        "name": "copy_paste_complete",
        "description": "Pasted text triggers the prompt, loads the page, and feeds autocompletion.",
        "run": copy_paste_complete,
    },
    {
        "name": "search_engine",
        "description": "Each default search engine receives the next search.",
        "run": search_engine,
    },
]


def get_scenario(name: str) -> dict:
    for s in SCENARIOS:
        if s["name"] == name:
            return s
    raise ValueError(f"Unknown scenario: {name}")
