"""E2E search bar scenarios on a real device.

Covers the suggestion opt-in prompt, the remembered preference, URL-like
input, clipboard paste + autocompletion, and switching the default search
engine. Each test starts from a cleared browser profile.
"""

from __future__ import annotations

from scenarios.search import (
    copy_paste_complete,
    dismiss_prompt_presence,
    no_suggestions_when_entering_url,
    prompt_presence,
    search_engine,
)


def test_prompt_presence(run_scenario):
    run_scenario(prompt_presence)


def test_dismiss_prompt_presence(run_scenario):
    run_scenario(dismiss_prompt_presence)


def test_do_not_show_suggestions_when_entering_url(run_scenario):
    run_scenario(no_suggestions_when_entering_url)


def test_copy_paste_complete(run_scenario):
    run_scenario(copy_paste_complete)


def test_search_engine(run_scenario):
    run_scenario(search_engine)
