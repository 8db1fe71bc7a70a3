"""
Unit tests for machine hints, the blocked categorizer and the step mapper
"""

from journey_compiler.ir.types import Action, ActionKind, BlockedCategory, LocatorStrategy
from journey_compiler.journey_extractor.journey_parser import AcceptanceCriterion, ProceduralStep
from journey_compiler.mapping.categorizer import (
    categorize_blocked,
    categorize_step_text,
    suggest_improvements,
)
from journey_compiler.mapping.hints import contains_hints, extract_hints, remove_hints
from journey_compiler.mapping.patterns import text_locator
from journey_compiler.mapping.step_mapper import (
    get_mapping_stats,
    map_acceptance_criterion,
    map_step_text,
    map_steps,
)
from journey_compiler.pattern_store.matcher import StoreSnapshot
from journey_compiler.pattern_store.models import Lesson, RecordState


def _lesson(trigger, action, confidence=0.9, lesson_id="L0001"):
    return Lesson(
        id=lesson_id,
        confidence=confidence,
        first_seen="2026-03-01T09:00:00",
        state=RecordState.ACTIVE,
        trigger=trigger,
        pattern=action.to_dict(),
    )


class TestHints:
    """Test hint extraction"""

    def test_extract_role_and_exact(self):
        """Test: role and exact hints parsed, text cleaned."""
        hints = extract_hints("Click the Save button (role=button, exact=true)")
        assert hints.clean_text == "Click the Save button"
        assert hints.locator.role == "button"
        assert hints.locator.exact is True
        assert hints.count == 2
        assert hints.warnings == []

    def test_quoted_values(self):
        """Test: quoted hint values keep spaces."""
        hints = extract_hints('Wait for the report (signal="report-ready", timeout=15000)')
        assert hints.behavior.signal == "report-ready"
        assert hints.behavior.timeout == 15000

    def test_unknown_key_and_bad_role_warn(self):
        """Test: unknown keys and roles produce warnings, not errors."""
        hints = extract_hints("Click it (colour=red, role=buttn)")
        assert "Unknown hint type: colour" in hints.warnings
        assert "Invalid ARIA role: buttn" in hints.warnings
        assert hints.locator.role == "buttn"

    def test_invalid_value_ignored(self):
        """Test: a malformed timeout is dropped."""
        hints = extract_hints("Wait (timeout=soon)")
        assert hints.behavior.timeout is None
        assert hints.warnings

    def test_no_hints(self):
        """Test: plain text passes through."""
        assert not contains_hints("Click the Save button")
        assert remove_hints("Click the Save button (testid=save)") == "Click the Save button"
        assert extract_hints("Click the Save button").has_hints is False


class TestCategorizer:
    """Test blocked-step diagnostics"""

    def test_assertion_category(self):
        """Test: the dashboard step is an assertion."""
        reason = categorize_blocked("Verify the dashboard shows correct totals")
        assert reason.category == BlockedCategory.ASSERTION
        assert reason.suggestion == "Add an explicit expected value or locator"
        assert "Verify the dashboard shows correct totals" in reason.detail

    def test_toast_before_assertion(self):
        """Test: toast keywords win over assertion keywords."""
        assert categorize_blocked("Verify a toast shows").category == BlockedCategory.TOAST

    def test_unknown(self):
        """Test: no keyword gives unknown."""
        assert categorize_blocked("Frobnicate the widget").category == BlockedCategory.UNKNOWN

    def test_step_text_categories(self):
        """Test: coarse reporting categories."""
        assert categorize_step_text("User navigates somewhere") == "navigation"
        assert categorize_step_text("User clicks it") == "interaction"
        assert categorize_step_text("Nothing here") == "unknown"

    def test_suggestions(self):
        """Test: one suggestion per blocked step."""
        suggestions = suggest_improvements(["Click something", "Ponder"])
        assert len(suggestions) == 2
        assert "Could not determine intent" in suggestions[1]


class TestStepMapper:
    """Test single-step mapping"""

    def test_source_text_preserved(self):
        """Test: the action keeps the authored text."""
        text = "User taps the 'Save' btn"
        result = map_step_text(text)
        assert result.action.source_text == text
        assert result.normalized_text == "User click the 'Save' button"
        assert result.matched_by == "click-button-quoted"

    def test_role_hint_keeps_name(self):
        """Test: a role hint overrides the locator but keeps the name."""
        result = map_step_text("Click the Save button (role=button, exact=true)")
        locator = result.action.locator
        assert locator.strategy == LocatorStrategy.ROLE
        assert (locator.role, locator.value, locator.exact) == ("button", "Save", True)

    def test_testid_hint_alone(self):
        """Test: an unmatched step with a testid hint is inferred from hints."""
        result = map_step_text("Do the magic thing (testid=magic)")
        assert result.matched_by == "hints"
        assert result.action.kind == ActionKind.CLICK
        assert result.action.locator.strategy == LocatorStrategy.TESTID

    def test_module_hint(self):
        """Test: a module hint gives a module call."""
        result = map_step_text("Finish checkout (module=checkout.complete)")
        assert result.action.kind == ActionKind.CALL_MODULE
        assert (result.action.module, result.action.method) == ("checkout", "complete")

    def test_timeout_hint(self):
        """Test: a timeout hint overrides the action timeout."""
        result = map_step_text("User waits for 3 seconds (timeout=5000)")
        assert result.action.timeout_ms == 5000

    def test_blocked_step(self):
        """Test: unmatched text gives a blocked action with a reason."""
        result = map_step_text("Verify the dashboard shows correct totals")
        assert result.is_blocked
        assert result.matched_by is None
        assert result.action.blocked.category == BlockedCategory.ASSERTION

    def test_store_fallback_used_when_nothing_matches(self):
        """Test: a learned lesson maps an otherwise blocked step."""
        learned = Action(ActionKind.ASSERT_VISIBLE, locator=text_locator("Totals"))
        snapshot = StoreSnapshot.from_lessons([_lesson("Verify the dashboard shows correct totals", learned)])
        result = map_step_text("Verify the dashboard shows correct totals", store_fallback=snapshot.match)
        assert result.matched_by == "store:L0001"
        assert result.from_store
        assert result.action.kind == ActionKind.ASSERT_VISIBLE
        assert result.action.source_text == "Verify the dashboard shows correct totals"

    def test_store_never_overrides_builtin(self):
        """Test: a built-in pattern wins over a learned lesson for the same text."""
        learned = Action(ActionKind.HOVER, locator=text_locator("Save"))
        snapshot = StoreSnapshot.from_lessons([_lesson("Click the 'Save' button", learned)])
        result = map_step_text("Click the 'Save' button", store_fallback=snapshot.match)
        assert result.matched_by == "click-button-quoted"
        assert result.action.kind == ActionKind.CLICK

    def test_low_confidence_lessons_ignored(self):
        """Test: lessons under the minimum confidence are not used."""
        learned = Action(ActionKind.ASSERT_VISIBLE, locator=text_locator("Totals"))
        snapshot = StoreSnapshot.from_lessons(
            [_lesson("Verify the dashboard shows correct totals", learned, confidence=0.3)]
        )
        assert len(snapshot) == 0
        assert map_step_text("Verify the dashboard shows correct totals", store_fallback=snapshot.match).is_blocked


class TestMappingHelpers:
    """Test batch mapping and statistics"""

    def test_stats(self):
        """Test: counts per outcome and blocked category."""
        results = map_steps([
            "Click the 'Save' button",
            "User should see 'Welcome back'",
            "Verify the dashboard shows correct totals",
        ])
        stats = get_mapping_stats(results)
        assert stats["total"] == 3
        assert stats["mapped"] == 2
        assert stats["blocked"] == 1
        assert stats["actions"] == 1
        assert stats["assertions"] == 1
        assert stats["blocked_by_category"] == {"assertion": 1}
        assert stats["mapping_rate"] == 0.6667

    def test_empty_stats(self):
        """Test: no steps means full mapping rate."""
        assert get_mapping_stats([])["mapping_rate"] == 1.0

    def test_linked_procedural_step_not_duplicated(self):
        """Test: a linked procedural step already among the bullets is skipped."""
        criterion = AcceptanceCriterion("AC-1", "Sign up", ["User navigates to /signup"])
        procedural = [
            ProceduralStep(1, "User navigates to /signup", "AC-1"),
            ProceduralStep(2, "User refreshes the page", "AC-1"),
            ProceduralStep(3, "User logs in", "AC-2"),
        ]
        results = map_acceptance_criterion(criterion, procedural)
        assert [r.source_text for r in results] == ["User navigates to /signup", "User refreshes the page"]
