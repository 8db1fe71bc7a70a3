"""
Unit tests for journey document parsing
"""

import pytest

from journey_compiler.journey_extractor.journey_parser import (
    CompletionType,
    JourneyExtractor,
    JourneyStatus,
    JourneyTier,
    load_journey,
    parse_data_notes,
    parse_journey_content,
    validate_for_compile,
)
from journey_compiler.utils.errors import JourneyParseError

from conftest import SAMPLE_JOURNEY


class TestParseJourneyContent:
    """Test frontmatter and body parsing"""

    def test_frontmatter_fields(self, sample_journey):
        """Test: required and optional frontmatter are read."""
        assert sample_journey.journey_id == "JRN-0001"
        assert sample_journey.title == "Create an account"
        assert sample_journey.status == JourneyStatus.CLARIFIED
        assert sample_journey.tier == JourneyTier.SMOKE
        assert sample_journey.actor == "new-customer"
        assert sample_journey.scope == "signup"
        assert sample_journey.tags == ["accounts", "onboarding"]
        assert sample_journey.data_strategy == "seed"
        assert sample_journey.cleanup_strategy == "delete-created-user"
        assert sample_journey.modules == {"foundation": [], "features": []}

    def test_completion_signals(self, sample_journey):
        """Test: completion signals are typed."""
        assert len(sample_journey.completion) == 1
        assert sample_journey.completion[0].signal_type == CompletionType.URL
        assert sample_journey.completion[0].value == "/dashboard"

    def test_acceptance_criteria(self, sample_journey):
        """Test: criteria keep id, title and bullet order."""
        criteria = sample_journey.acceptance_criteria
        assert [c.criterion_id for c in criteria] == ["AC-1", "AC-2"]
        assert criteria[0].title == "Sign up form"
        assert criteria[0].steps[0] == "User navigates to /signup"
        assert criteria[0].steps[-1] == "Click the 'Save' button"
        assert len(criteria[1].steps) == 2

    def test_procedural_steps(self, sample_journey):
        """Test: (AC-n) links are stripped from the text."""
        steps = sample_journey.procedural_steps
        assert [(s.number, s.text, s.linked_criterion) for s in steps] == [
            (1, "User navigates to /signup", "AC-1"),
            (2, "User waits for the network to be idle", None),
        ]

    def test_step_count_and_finalized(self, sample_journey):
        """Test: derived properties."""
        assert sample_journey.step_count() == 8
        assert sample_journey.is_finalized
        assert "JRN-0001" in str(sample_journey)

    def test_data_notes(self):
        """Test: bullets under ## Data are collected."""
        body = "## Data Notes\n- Uses a fresh email per run\n- Seeds one order\n"
        assert parse_data_notes(body) == ["Uses a fresh email per run", "Seeds one order"]


class TestParseErrors:
    """Test rejected documents"""

    def test_missing_frontmatter(self):
        """Test: content without --- is rejected."""
        with pytest.raises(JourneyParseError) as exc_info:
            parse_journey_content("# Just a heading\n")
        assert "frontmatter" in str(exc_info.value)

    def test_invalid_yaml(self):
        """Test: unparsable YAML is rejected."""
        with pytest.raises(JourneyParseError):
            parse_journey_content("---\nid: [unclosed\n---\n")

    def test_all_issues_reported(self):
        """Test: every frontmatter problem is listed."""
        content = "---\nid: bad-id\ntitle: ''\nstatus: unknown\ntier: smoke\n---\n"
        with pytest.raises(JourneyParseError) as exc_info:
            parse_journey_content(content)
        issues = exc_info.value.issues
        assert any(i.startswith("actor:") for i in issues)
        assert any(i.startswith("title:") for i in issues)
        assert any("must look like JRN-0001" in i for i in issues)
        assert any(i.startswith("status:") for i in issues)

    def test_bad_completion_type(self):
        """Test: unsupported completion types are reported."""
        content = SAMPLE_JOURNEY.replace("type: url", "type: email")
        with pytest.raises(JourneyParseError) as exc_info:
            parse_journey_content(content)
        assert "completion.0.type: 'email' is not supported" in exc_info.value.issues


class TestValidateForCompile:
    """Test compile readiness"""

    def test_ready(self, sample_journey):
        """Test: a clarified journey with steps is ready."""
        assert validate_for_compile(sample_journey) == []

    def test_draft_rejected(self):
        """Test: a proposed journey is not ready."""
        journey = parse_journey_content(SAMPLE_JOURNEY.replace("status: clarified", "status: proposed"))
        problems = validate_for_compile(journey)
        assert len(problems) == 1
        assert "proposed" in problems[0]

    def test_empty_journey_rejected(self):
        """Test: no steps at all is not ready."""
        content = SAMPLE_JOURNEY.split("## Acceptance Criteria")[0]
        problems = validate_for_compile(parse_journey_content(content))
        assert problems == ["journey has no acceptance criteria or procedural steps"]


class TestJourneyExtractor:
    """Test loading from disk"""

    def test_load_journey(self, sample_journey_file):
        """Test: a file on disk parses with its path recorded."""
        journey = load_journey(sample_journey_file)
        assert journey.journey_id == "JRN-0001"
        assert journey.source_path == str(sample_journey_file)

    def test_missing_file(self, tmp_path):
        """Test: a missing file raises JourneyParseError."""
        with pytest.raises(JourneyParseError):
            load_journey(tmp_path / "nope.journey.md")

    def test_not_finalized(self, tmp_path):
        """Test: require_finalized rejects drafts, unless relaxed."""
        path = tmp_path / "JRN-0002.journey.md"
        path.write_text(SAMPLE_JOURNEY.replace("status: clarified", "status: defined"), encoding="utf-8")
        with pytest.raises(JourneyParseError) as exc_info:
            load_journey(path)
        assert exc_info.value.issues
        assert load_journey(path, require_finalized=False).status == JourneyStatus.DEFINED

    def test_custom_accepted_statuses(self, tmp_path):
        """Test: accepted statuses can be widened."""
        path = tmp_path / "JRN-0003.journey.md"
        path.write_text(SAMPLE_JOURNEY.replace("status: clarified", "status: defined"), encoding="utf-8")
        extractor = JourneyExtractor(accepted_statuses=["defined"])
        assert extractor.load_journey(path).status == JourneyStatus.DEFINED

    def test_discover_sorted(self, tmp_path):
        """Test: discovery is recursive and sorted."""
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "JRN-0002.journey.md").write_text(SAMPLE_JOURNEY, encoding="utf-8")
        (tmp_path / "JRN-0001.journey.md").write_text(SAMPLE_JOURNEY, encoding="utf-8")
        (tmp_path / "notes.md").write_text("ignored", encoding="utf-8")
        found = JourneyExtractor().discover(tmp_path)
        assert [p.name for p in found] == ["JRN-0001.journey.md", "JRN-0002.journey.md"]
