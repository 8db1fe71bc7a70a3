"""
Compiler - Pure entry points and batch compilation

``compile_journey`` and ``render`` are pure: the same (Journey, store
snapshot) always yields the same IR and the same source text. Batch
compilation takes one snapshot up front and fans journeys out to worker
threads; a failing journey is recorded in the summary and never stops the
others.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from journey_compiler.config import CompilerConfig
from journey_compiler.ir.builder import CompileDiagnostics, IRBuilder
from journey_compiler.ir.types import IRJourney
from journey_compiler.journey_extractor.journey_parser import Journey, JourneyExtractor, validate_for_compile
from journey_compiler.mapping.glossary import Glossary
from journey_compiler.pattern_store.matcher import StoreSnapshot
from journey_compiler.pattern_store.store import PatternStore
from journey_compiler.test_generator.module_generator import ModuleGenerator, write_module
from journey_compiler.test_generator.test_generator import GeneratedTest, TestGenerator
from journey_compiler.utils.errors import ErrorContext, JourneyParseError
from journey_compiler.utils.logger import get_logger


logger = get_logger("compiler")

JourneySource = Union[str, Path, Journey]


# ============================================================================
# Pure entry points
# ============================================================================

def compile_journey(journey: Journey,
                    store_snapshot: Optional[StoreSnapshot] = None,
                    glossary: Optional[Glossary] = None) -> Tuple[IRJourney, CompileDiagnostics]:
    """
    Compile one journey to IR

    Args:
        journey: Parsed journey
        store_snapshot: Read-only view of learned patterns (None for none)
        glossary: Synonym table override

    Returns:
        (IRJourney, CompileDiagnostics)
    """
    return IRBuilder(glossary=glossary, snapshot=store_snapshot).build(journey)


def render(ir: IRJourney, config: Optional[CompilerConfig] = None) -> str:
    """Render IR to a complete test file"""
    generator_config = config.generator if config else None
    return TestGenerator(generator_config).generate(ir).code


def render_module(source, name: str) -> str:
    """Render IR (or a list of actions) to a support module"""
    return ModuleGenerator().generate(source, name).code


# ============================================================================
# Results
# ============================================================================

@dataclass
class CompileResult:
    """Outcome of compiling one journey"""
    source: str
    journey_id: Optional[str] = None
    ir: Optional[IRJourney] = None
    diagnostics: Optional[CompileDiagnostics] = None
    generated: Optional[GeneratedTest] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "source": self.source,
            "journey_id": self.journey_id,
            "ok": self.ok,
        }
        if self.diagnostics is not None:
            data["diagnostics"] = self.diagnostics.to_dict()
        if self.generated is not None:
            data["filename"] = self.generated.filename
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class CompileSummary:
    """Aggregate result of a batch compile, for external reporting"""
    results: List[CompileResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    pattern_store_size: int = 0

    @property
    def succeeded(self) -> List[CompileResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[CompileResult]:
        return [r for r in self.results if not r.ok]

    def totals(self) -> Dict[str, Any]:
        total = mapped = blocked = 0
        by_category: Dict[str, int] = {}
        for result in self.succeeded:
            stats = result.diagnostics.stats if result.diagnostics else {}
            total += stats.get("total", 0)
            mapped += stats.get("mapped", 0)
            blocked += stats.get("blocked", 0)
            for category, count in stats.get("blocked_by_category", {}).items():
                by_category[category] = by_category.get(category, 0) + count
        return {
            "journeys": len(self.results),
            "compiled": len(self.succeeded),
            "failed": len(self.failed),
            "steps": total,
            "mapped": mapped,
            "blocked": blocked,
            "mapping_rate": round(mapped / total, 4) if total else 1.0,
            "blocked_by_category": dict(sorted(by_category.items())),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "pattern_store_size": self.pattern_store_size,
            "totals": self.totals(),
            "journeys": [r.to_dict() for r in self.results],
            "errors": [r.error for r in self.failed],
        }


# ============================================================================
# File and batch compilation
# ============================================================================

def _describe(source: JourneySource) -> str:
    if isinstance(source, Journey):
        return source.source_path or source.journey_id
    return str(source)


def _compile_one(source: JourneySource,
                 snapshot: StoreSnapshot,
                 config: CompilerConfig,
                 glossary: Optional[Glossary]) -> CompileResult:
    result = CompileResult(source=_describe(source))

    # One bad journey never aborts the batch
    with ErrorContext("compiler", {"source": result.source}, reraise=False) as error_context:
        if isinstance(source, Journey):
            journey = source
            problems = validate_for_compile(journey, config.accepted_statuses)
            if problems:
                raise JourneyParseError(
                    f"Journey not ready for compilation: {journey.journey_id}",
                    journey.source_path,
                    problems,
                )
        else:
            extractor = JourneyExtractor(accepted_statuses=config.accepted_statuses)
            journey = extractor.load_journey(source)

        result.journey_id = journey.journey_id
        result.ir, result.diagnostics = compile_journey(journey, snapshot, glossary)
        result.generated = TestGenerator(config.generator).generate(result.ir)

    info = error_context.error_info
    if info is not None:
        result.error = {
            "error_type": info["error_type"],
            "message": info["error_message"],
            "source": result.source,
        }
        issues = (info.get("context") or {}).get("issues")
        if issues:
            result.error["issues"] = list(issues)
        logger.warning(f"⚠️  Failed to compile {result.source}: {info['error_message']}")
    return result


def compile_file(path: Union[str, Path],
                 store_snapshot: Optional[StoreSnapshot] = None,
                 config: Optional[CompilerConfig] = None,
                 glossary: Optional[Glossary] = None) -> CompileResult:
    """Parse, compile and render one journey file; errors land in the result"""
    return _compile_one(path, store_snapshot or StoreSnapshot.empty(), config or CompilerConfig(), glossary)


def _snapshot_from(store: Union[PatternStore, StoreSnapshot, None]) -> StoreSnapshot:
    if store is None:
        return StoreSnapshot.empty()
    if isinstance(store, StoreSnapshot):
        return store
    return store.snapshot()


def compile_batch(sources: Iterable[JourneySource],
                  store: Union[PatternStore, StoreSnapshot, None] = None,
                  max_workers: Optional[int] = None,
                  config: Optional[CompilerConfig] = None,
                  glossary: Optional[Glossary] = None) -> CompileSummary:
    """
    Compile many journeys in parallel worker threads

    The store is read once into an immutable snapshot, so every journey in
    the batch sees the same learned patterns.

    Args:
        sources: Journey file paths or parsed Journey objects
        store: PatternStore (snapshotted here), a snapshot, or None
        max_workers: Thread count (defaults to ``config.max_workers``)
        config: Compiler configuration
        glossary: Synonym table override

    Returns:
        CompileSummary with results in input order
    """
    config = config or CompilerConfig()
    items: Sequence[JourneySource] = list(sources)
    snapshot = _snapshot_from(store)
    workers = max(1, int(max_workers or config.max_workers))

    summary = CompileSummary(pattern_store_size=len(snapshot))
    logger.info(f"Compiling {len(items)} journeys with {workers} workers ({len(snapshot)} learned patterns)")

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="journey-compile") as pool:
        summary.results = list(pool.map(lambda item: _compile_one(item, snapshot, config, glossary), items))

    summary.finished_at = datetime.now()
    totals = summary.totals()
    if totals["failed"]:
        logger.warning(f"⚠️  {totals['failed']}/{totals['journeys']} journeys failed to compile")
    logger.info(
        f"✓ Compiled {totals['compiled']} journeys: {totals['mapped']}/{totals['steps']} steps mapped, "
        f"{totals['blocked']} blocked"
    )
    return summary


def write_outputs(results: Union[CompileSummary, Iterable[CompileResult]],
                  output_dir: Optional[Union[str, Path]] = None,
                  config: Optional[CompilerConfig] = None) -> List[Path]:
    """
    Write generated test files (and support modules when enabled)

    Failed results are skipped. Returns the written paths in result order.
    """
    config = config or CompilerConfig()
    items = results.results if isinstance(results, CompileSummary) else list(results)
    generator = TestGenerator(config.generator)
    directory = Path(output_dir or config.generator.output_directory)

    written: List[Path] = []
    for result in items:
        if not result.ok or result.generated is None:
            continue
        written.append(generator.write(result.generated, directory))
        if config.generator.emit_support_module and result.ir is not None:
            module = ModuleGenerator().generate(result.ir, result.ir.journey_id)
            written.append(write_module(module, config.generator.modules_directory))
    return written


__all__ = [
    "compile_journey",
    "render",
    "render_module",
    "CompileResult",
    "CompileSummary",
    "compile_file",
    "compile_batch",
    "write_outputs",
]
