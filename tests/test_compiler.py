"""
Integration tests for the compiler entry points and batch compilation
"""

import json

import journey_compiler
from journey_compiler.compiler import (
    compile,
    compile_batch,
    compile_file,
    compile_journey,
    render,
    render_module,
    write_outputs,
)
from journey_compiler.config import CompilerConfig, GeneratorConfig
from journey_compiler.ir.types import Action, ActionKind
from journey_compiler.journey_extractor.journey_parser import parse_journey_content
from journey_compiler.mapping.patterns import text_locator
from journey_compiler.pattern_store.models import LessonCategory

from conftest import SAMPLE_JOURNEY


def _write_journeys(directory, count=3):
    paths = []
    for number in range(1, count + 1):
        journey_id = f"JRN-{number:04d}"
        path = directory / f"{journey_id}.journey.md"
        path.write_text(SAMPLE_JOURNEY.replace("JRN-0001", journey_id), encoding="utf-8")
        paths.append(path)
    return paths


class TestPureEntryPoints:
    """Test compile / render"""

    def test_compile_alias(self):
        """Test: compile is compile_journey, exposed at package level."""
        assert compile is compile_journey
        assert journey_compiler.compile is compile_journey

    def test_compile_and_render(self, sample_journey):
        """Test: compile then render gives a test file."""
        ir, diagnostics = compile(sample_journey)
        source = render(ir)
        assert ir.journey_id == "JRN-0001"
        assert diagnostics.blocked_count == 1
        assert source.startswith("/**")
        assert "test.describe(" in source

    def test_pure(self, sample_journey):
        """Test: same journey and snapshot give the same output."""
        first_ir, _ = compile(sample_journey)
        second_ir, _ = compile(parse_journey_content(SAMPLE_JOURNEY, "journeys/JRN-0001.journey.md"))
        assert first_ir.to_json() == second_ir.to_json()
        assert render(first_ir) == render(second_ir)

    def test_render_uses_config(self, sample_journey):
        """Test: generator settings flow through render()."""
        config = CompilerConfig(generator=GeneratorConfig(base_url="https://staging.example.com"))
        ir, _ = compile(sample_journey)
        assert "baseURL: 'https://staging.example.com'" in render(ir, config)

    def test_render_module(self, sample_journey):
        """Test: IR renders to a support module too."""
        ir, _ = compile(sample_journey)
        assert "export class SignupPage {" in render_module(ir, "signup")


class TestCompileFile:
    """Test single-file compilation"""

    def test_success(self, sample_journey_file):
        """Test: a valid file compiles."""
        result = compile_file(sample_journey_file)
        assert result.ok
        assert result.journey_id == "JRN-0001"
        assert result.generated.filename == "jrn-0001.spec.ts"
        assert result.to_dict()["filename"] == "jrn-0001.spec.ts"

    def test_parse_error_recorded(self, tmp_path):
        """Test: a malformed file becomes an error entry, not an exception."""
        path = tmp_path / "broken.journey.md"
        path.write_text("---\nid: nope\n---\n", encoding="utf-8")
        result = compile_file(path)
        assert not result.ok
        assert result.error["error_type"] == "JourneyParseError"
        assert result.error["issues"]


class TestCompileBatch:
    """Test batch compilation"""

    def test_bad_journey_does_not_stop_batch(self, tmp_path):
        """Test: one failure is reported, the others compile, order kept."""
        good = _write_journeys(tmp_path, 2)
        bad = tmp_path / "JRN-0099.journey.md"
        bad.write_text("no frontmatter here\n", encoding="utf-8")
        sources = [good[0], bad, good[1]]

        summary = compile_batch(sources, max_workers=3)

        assert [r.source for r in summary.results] == [str(p) for p in sources]
        assert len(summary.failed) == 1
        assert summary.failed[0].source == str(bad)
        assert [r.journey_id for r in summary.succeeded] == ["JRN-0001", "JRN-0002"]

    def test_summary_totals(self, tmp_path):
        """Test: totals aggregate per-journey statistics."""
        summary = compile_batch(_write_journeys(tmp_path, 3))
        totals = summary.totals()
        assert totals["journeys"] == 3
        assert totals["compiled"] == 3
        assert totals["failed"] == 0
        assert totals["steps"] == 21
        assert totals["blocked"] == 3
        assert totals["blocked_by_category"] == {"assertion": 3}

    def test_summary_serializable(self, tmp_path):
        """Test: the summary dict is plain JSON."""
        summary = compile_batch(_write_journeys(tmp_path, 1))
        data = json.loads(json.dumps(summary.to_dict()))
        assert data["totals"]["journeys"] == 1
        assert data["errors"] == []
        assert data["finished_at"] is not None

    def test_draft_journey_object_rejected(self):
        """Test: a parsed journey that is not finalized fails in the batch."""
        draft = parse_journey_content(SAMPLE_JOURNEY.replace("status: clarified", "status: proposed"))
        summary = compile_batch([draft])
        assert len(summary.failed) == 1
        assert "proposed" in summary.failed[0].error["issues"][0]

    def test_store_snapshot_shared(self, tmp_path, store):
        """Test: a store passed to the batch is snapshotted once for every journey."""
        record = store.record_resolution(
            "Verify the dashboard shows correct totals",
            Action(ActionKind.ASSERT_VISIBLE, locator=text_locator("Totals")),
            journey_id="JRN-0001",
        )
        assert record.status == "created"
        assert store.get_lesson(record.record_id).category == LessonCategory.ASSERTION

        summary = compile_batch(_write_journeys(tmp_path, 2), store=store)

        # A new lesson has not earned enough confidence to be used yet
        assert summary.pattern_store_size == 0
        assert summary.totals()["blocked"] == 2


class TestWriteOutputs:
    """Test writing generated files"""

    def test_writes_successful_results(self, tmp_path):
        """Test: failed results are skipped."""
        good = _write_journeys(tmp_path, 1)
        bad = tmp_path / "bad.journey.md"
        bad.write_text("nothing\n", encoding="utf-8")
        summary = compile_batch(good + [bad])

        written = write_outputs(summary, tmp_path / "out")

        assert [p.name for p in written] == ["jrn-0001.spec.ts"]
        assert written[0].read_text(encoding="utf-8") == summary.results[0].generated.code

    def test_support_modules(self, tmp_path):
        """Test: support modules are written when enabled."""
        config = CompilerConfig(generator=GeneratorConfig(
            output_directory=str(tmp_path / "tests"),
            modules_directory=str(tmp_path / "modules"),
            emit_support_module=True,
        ))
        summary = compile_batch(_write_journeys(tmp_path, 1), config=config)
        written = write_outputs(summary, config=config)
        assert sorted(p.name for p in written) == ["jrn-0001.spec.ts", "jrn-0001.ts"]
