"""
Unit tests for the ordered step patterns.

The corpus in fixtures/pattern_corpus.yaml pins the first-matching pattern
for each step; a reordering or synonym edit that changes any of them fails
here.
"""

from pathlib import Path

import pytest
import yaml

from journey_compiler.ir.types import ActionKind, LocatorStrategy, ValueType
from journey_compiler.mapping.glossary import normalize_step_text
from journey_compiler.mapping.patterns import (
    ALL_PATTERNS,
    PATTERN_GROUPS,
    PATTERN_VERSION,
    create_value_from_text,
    find_matching_patterns,
    get_all_pattern_names,
    get_pattern,
    get_pattern_count_by_category,
    key_name,
    match_pattern,
    parse_selector_to_locator,
)


CORPUS_PATH = Path(__file__).parent / "fixtures" / "pattern_corpus.yaml"


def _load_corpus():
    with open(CORPUS_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


CORPUS = _load_corpus()


def _match(text):
    return match_pattern(normalize_step_text(text))


class TestPatternCorpus:
    """Test the regression corpus."""

    def test_corpus_version_matches(self):
        """Test: the corpus was updated with the current pattern version."""
        assert CORPUS["pattern_version"] == PATTERN_VERSION

    @pytest.mark.parametrize("entry", CORPUS["steps"], ids=lambda e: e["text"])
    def test_first_match(self, entry):
        """Test: each corpus step resolves to its pinned pattern."""
        match = _match(entry["text"])
        name = match[0].name if match else None
        assert name == entry["pattern"]

    def test_corpus_names_exist(self):
        """Test: every pinned pattern name is defined."""
        names = set(get_all_pattern_names())
        for entry in CORPUS["steps"]:
            if entry["pattern"] is not None:
                assert entry["pattern"] in names


class TestScenarioMappings:
    """Test the documented example steps."""

    def test_click_quoted_button(self):
        """Test: Click the 'Save' button → click role=button name=Save."""
        _, action = _match("Click the 'Save' button")
        assert action.kind == ActionKind.CLICK
        assert action.locator.strategy == LocatorStrategy.ROLE
        assert (action.role, action.target) == ("button", "Save")

    def test_select_from_dropdown(self):
        """Test: Select 'USA' from the country dropdown → select country=USA."""
        _, action = _match("Select 'USA' from the country dropdown")
        assert action.kind == ActionKind.SELECT
        assert action.target == "country"
        assert action.option == "USA"

    def test_select_button_is_a_click(self):
        """Test: Select the Submit button → click (trailing role keyword decides)."""
        _, action = _match("Select the Submit button")
        assert action.kind == ActionKind.CLICK
        assert (action.role, action.target) == ("button", "Submit")

    def test_success_toast_with_message(self):
        """Test: A success toast appears with Account created."""
        _, action = _match("A success toast appears with Account created")
        assert action.kind == ActionKind.ASSERT_TOAST
        assert action.toast_type == "success"
        assert action.message == "Account created"

    def test_bare_press_is_a_click(self):
        """Test: Press the 'Save' button / Press the Cancel link → click."""
        _, button = _match("Press the 'Save' button")
        assert button.kind == ActionKind.CLICK
        assert (button.role, button.target) == ("button", "Save")
        _, link = _match("Press the Cancel link")
        assert link.kind == ActionKind.CLICK
        assert link.target == "Cancel"

    def test_named_key(self):
        """Test: press the X key → keyboard press with the Playwright key name."""
        _, action = _match("User presses the ctrl+a key")
        assert action.kind == ActionKind.PRESS
        assert action.key == "Control+a"
        assert key_name("f5") == "F5"
        assert key_name("pagedown") == "PageDown"

    def test_unmappable_step(self):
        """Test: Verify the dashboard shows correct totals matches nothing."""
        assert _match("Verify the dashboard shows correct totals") is None


class TestPatternOrdering:
    """Test first-match-wins ordering."""

    def test_several_patterns_can_match(self):
        """Test: the earlier pattern wins when two match."""
        text = normalize_step_text("User clicks on the Help link")
        names = find_matching_patterns(text)
        assert names[0] == "click-on-element"
        assert "click-element-generic" in names
        assert match_pattern(text)[0].name == "click-on-element"

    def test_reordering_changes_result(self):
        """Test: a reversed list picks a different pattern."""
        text = normalize_step_text("User clicks on the Help link")
        assert match_pattern(text, list(reversed(ALL_PATTERNS)))[0].name != "click-on-element"

    def test_swapping_disjoint_groups_keeps_corpus(self):
        """Test: toast and modal patterns never compete, so swapping them changes no corpus result."""
        groups = dict(PATTERN_GROUPS)
        order = [name for name, _ in PATTERN_GROUPS]
        toast, modal = order.index("toast"), order.index("modal")
        assert modal == toast + 1
        order[toast], order[modal] = order[modal], order[toast]
        swapped = [pattern for name in order for pattern in groups[name]]
        assert len(swapped) == len(ALL_PATTERNS)

        for entry in CORPUS["steps"]:
            match = match_pattern(normalize_step_text(entry["text"]), swapped)
            assert (match[0].name if match else None) == entry["pattern"], entry["text"]

    def test_keyboard_group_precedes_click(self):
        """Test: 'presses the tab' is a key press, not a click on a tab."""
        order = [name for name, _ in PATTERN_GROUPS]
        assert order.index("keyboard") < order.index("click")
        _, action = _match("User presses the tab")
        assert action.kind == ActionKind.PRESS
        assert action.key == "Tab"

    def test_matching_is_deterministic(self):
        """Test: repeated matches give equal actions."""
        text = "Enter 'alice' in the 'Name' field"
        assert _match(text)[1] == _match(text)[1]

    def test_pattern_names_unique(self):
        """Test: no duplicated pattern names."""
        names = get_all_pattern_names()
        assert len(names) == len(set(names))

    def test_url_steps_not_taken_by_contains_text(self):
        """Test: 'the URL should contain' is a URL assertion."""
        _, action = _match("The URL should contain '/dashboard'")
        assert action.kind == ActionKind.ASSERT_URL
        assert action.pattern == "/dashboard"


class TestPatternHelpers:
    """Test value and selector helpers."""

    def test_value_types(self):
        """Test: actor, generated, testData and literal values."""
        assert create_value_from_text("{{email}}").value_type == ValueType.ACTOR
        assert create_value_from_text("{{email}}").value == "email"
        assert create_value_from_text("order-${runId}").value_type == ValueType.GENERATED
        assert create_value_from_text("$user.email").value_type == ValueType.TEST_DATA
        assert create_value_from_text("$user.email").value == "user.email"
        assert create_value_from_text("hello").value_type == ValueType.LITERAL

    def test_parse_selector(self):
        """Test: role suffix, field suffix and plain text."""
        button = parse_selector_to_locator("the Save button")
        assert (button.strategy, button.role, button.value) == (LocatorStrategy.ROLE, "button", "Save")
        field = parse_selector_to_locator("Email field")
        assert (field.strategy, field.value) == (LocatorStrategy.LABEL, "Email")
        text = parse_selector_to_locator("'Welcome'")
        assert (text.strategy, text.value) == (LocatorStrategy.TEXT, "Welcome")

    def test_get_pattern(self):
        """Test: lookup by name."""
        assert get_pattern("user-login").kind == ActionKind.CALL_MODULE
        assert get_pattern("no-such-pattern") is None

    def test_count_by_category(self):
        """Test: category counts cover every pattern."""
        assert sum(get_pattern_count_by_category().values()) == len(ALL_PATTERNS)

    def test_wait_seconds_timeout(self):
        """Test: seconds convert to milliseconds."""
        _, action = _match("User waits for 3 seconds")
        assert action.timeout_ms == 3000
