"""
IR Builder - Journey to IRJourney

Walks acceptance criteria and procedural steps in document order and maps
every step. Procedural steps linked to a criterion are folded into that
criterion; unlinked ones become ``PS-n`` steps. Completion signals become
terminal assertions on the last step.

Learned patterns from a store snapshot are consulted only after the
built-in patterns fail, so they can fill gaps but never override.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from journey_compiler.ir.types import Action, ActionKind, IRJourney, IRStep, Locator, LocatorStrategy
from journey_compiler.journey_extractor.journey_parser import CompletionSignal, CompletionType, Journey
from journey_compiler.mapping.categorizer import suggest_improvements
from journey_compiler.mapping.glossary import Glossary
from journey_compiler.mapping.patterns import PATTERN_VERSION
from journey_compiler.mapping.step_mapper import (
    StepMappingResult,
    get_mapping_stats,
    map_acceptance_criterion,
    map_procedural_step,
)
from journey_compiler.pattern_store.matcher import StoreSnapshot
from journey_compiler.utils.logger import get_logger


logger = get_logger("ir_builder")


@dataclass
class BlockedStepInfo:
    step_id: str
    source_text: str
    summary: str
    category: str
    suggestion: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "step_id": self.step_id,
            "source_text": self.source_text,
            "summary": self.summary,
            "category": self.category,
            "suggestion": self.suggestion,
        }


@dataclass
class CompileDiagnostics:
    """Per-journey mapping statistics and blocked-step details"""
    journey_id: str
    stats: Dict[str, Any] = field(default_factory=dict)
    blocked: List[BlockedStepInfo] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    @property
    def blocked_count(self) -> int:
        return len(self.blocked)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "journey_id": self.journey_id,
            "stats": dict(self.stats),
            "blocked": [b.to_dict() for b in self.blocked],
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
        }


def completion_to_action(signal: CompletionSignal) -> Action:
    """Terminal check for one ``completion`` entry"""
    source = f"completion: {signal.signal_type.value}={signal.value}"
    if signal.signal_type == CompletionType.URL:
        return Action(ActionKind.ASSERT_URL, source_text=source, pattern=signal.value, matched_by="completion")
    if signal.signal_type == CompletionType.TOAST:
        return Action(ActionKind.ASSERT_TOAST, source_text=source, toast_type="success",
                      message=signal.value, matched_by="completion")
    if signal.signal_type == CompletionType.TITLE:
        return Action(ActionKind.ASSERT_TITLE, source_text=source, text=signal.value, matched_by="completion")
    if signal.signal_type == CompletionType.ELEMENT:
        return Action(ActionKind.ASSERT_VISIBLE, source_text=source,
                      locator=Locator(LocatorStrategy.TEXT, signal.value), matched_by="completion")
    return Action(ActionKind.WAIT_FOR_NETWORK_IDLE, source_text=source, pattern=signal.value,
                  matched_by="completion")


class IRBuilder:
    """
    Builds IR for journeys

    Args:
        glossary: Glossary used to normalize step text
        snapshot: Pattern store snapshot for learned-pattern fallback
    """

    def __init__(self, glossary: Optional[Glossary] = None, snapshot: Optional[StoreSnapshot] = None):
        self.glossary = glossary
        self.snapshot = snapshot

    def _fallback(self):
        if self.snapshot is None or len(self.snapshot) == 0:
            return None
        return self.snapshot.match

    def build(self, journey: Journey) -> Tuple[IRJourney, CompileDiagnostics]:
        """
        Map every step of ``journey``

        Returns:
            (IRJourney, CompileDiagnostics)
        """
        fallback = self._fallback()
        criterion_ids = {ac.criterion_id for ac in journey.acceptance_criteria}

        steps: List[IRStep] = []
        all_results: List[StepMappingResult] = []
        diagnostics = CompileDiagnostics(journey_id=journey.journey_id)

        def add_step(step_id: str, description: str, results: List[StepMappingResult]) -> None:
            ir_step = IRStep(step_id=step_id, description=description)
            for result in results:
                ir_step.add(result.action)
                diagnostics.warnings.extend(f"{step_id}: {w}" for w in result.warnings)
                if result.is_blocked:
                    reason = result.action.blocked
                    diagnostics.blocked.append(BlockedStepInfo(
                        step_id=step_id,
                        source_text=result.source_text,
                        summary=getattr(reason, "summary", str(reason)),
                        category=getattr(getattr(reason, "category", None), "value", "unknown"),
                        suggestion=getattr(reason, "suggestion", ""),
                    ))
            steps.append(ir_step)
            all_results.extend(results)

        for criterion in journey.acceptance_criteria:
            results = map_acceptance_criterion(criterion, journey.procedural_steps, self.glossary, fallback)
            add_step(criterion.criterion_id, criterion.title, results)

        for procedural in journey.procedural_steps:
            if procedural.linked_criterion in criterion_ids:
                continue
            if procedural.linked_criterion:
                diagnostics.warnings.append(
                    f"PS-{procedural.number}: linked to unknown criterion {procedural.linked_criterion}"
                )
            result = map_procedural_step(procedural, self.glossary, fallback)
            add_step(f"PS-{procedural.number}", procedural.text, [result])

        if journey.completion:
            if not steps:
                steps.append(IRStep(step_id="COMPLETION", description="Completion signals"))
            for signal in journey.completion:
                steps[-1].add(completion_to_action(signal))

        ir = IRJourney(
            journey_id=journey.journey_id,
            title=journey.title,
            tier=journey.tier.value,
            actor=journey.actor,
            scope=journey.scope,
            tags=list(journey.tags),
            steps=steps,
            module_dependencies={k: sorted(v) for k, v in journey.modules.items()},
            data_strategy=journey.data_strategy,
            cleanup_strategy=journey.cleanup_strategy,
            pattern_version=PATTERN_VERSION,
            source_path=journey.source_path,
        )

        diagnostics.stats = get_mapping_stats(all_results)
        diagnostics.suggestions = suggest_improvements(b.source_text for b in diagnostics.blocked)

        stats = diagnostics.stats
        if stats["blocked"]:
            logger.warning(
                f"⚠️  {journey.journey_id}: {stats['blocked']}/{stats['total']} steps blocked "
                f"({stats['blocked_by_category']})"
            )
        else:
            logger.info(f"✓ {journey.journey_id}: all {stats['total']} steps mapped")

        # Undeclared modules called by steps go under foundation
        declared = set(ir.module_dependencies.get("foundation", [])) | set(ir.module_dependencies.get("features", []))
        undeclared = set(ir.required_modules) - declared
        if undeclared:
            ir.module_dependencies["foundation"] = sorted(
                set(ir.module_dependencies.get("foundation", [])) | undeclared
            )

        return ir, diagnostics


def build_ir(journey: Journey,
             snapshot: Optional[StoreSnapshot] = None,
             glossary: Optional[Glossary] = None) -> Tuple[IRJourney, CompileDiagnostics]:
    return IRBuilder(glossary=glossary, snapshot=snapshot).build(journey)


__all__ = [
    "IRBuilder",
    "CompileDiagnostics",
    "BlockedStepInfo",
    "completion_to_action",
    "build_ir",
]
