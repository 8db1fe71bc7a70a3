"""
Step Mapper - Turns one free-text step into one IR action

Order of resolution for a single step:

1. Strip machine hints ``(role=..., testid=...)``
2. Normalize with the glossary
3. First matching built-in pattern; locator hints override its locator
4. Locator hints alone (action inferred from the verb)
5. Learned patterns from a pattern store snapshot, if one is given
6. Otherwise a blocked action with a categorized reason
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from journey_compiler.ir.types import Action, ActionKind, LocatorStrategy, ValueSpec, ValueType
from journey_compiler.journey_extractor.journey_parser import AcceptanceCriterion, ProceduralStep
from journey_compiler.mapping.categorizer import categorize_blocked
from journey_compiler.mapping.glossary import Glossary, normalize_step_text
from journey_compiler.mapping.hints import ExtractedHints, extract_hints, locator_from_hints
from journey_compiler.mapping.patterns import match_pattern
from journey_compiler.utils.logger import get_logger


logger = get_logger("step_mapper")

# Receives the hint-free step text, returns (record id, action) or None
StoreFallback = Callable[[str], Optional[Tuple[str, Action]]]

_LOCATOR_KINDS = frozenset({
    ActionKind.CLICK, ActionKind.DBLCLICK, ActionKind.RIGHT_CLICK, ActionKind.FILL,
    ActionKind.CLEAR, ActionKind.SELECT, ActionKind.CHECK, ActionKind.UNCHECK,
    ActionKind.HOVER, ActionKind.FOCUS, ActionKind.WAIT_FOR_VISIBLE, ActionKind.WAIT_FOR_HIDDEN,
    ActionKind.ASSERT_VISIBLE, ActionKind.ASSERT_NOT_VISIBLE, ActionKind.ASSERT_TEXT,
    ActionKind.ASSERT_VALUE, ActionKind.ASSERT_ENABLED, ActionKind.ASSERT_DISABLED,
    ActionKind.ASSERT_CHECKED, ActionKind.ASSERT_COUNT,
})


@dataclass
class StepMappingResult:
    """Outcome of mapping a single step"""
    source_text: str
    normalized_text: str
    action: Action
    matched_by: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def is_blocked(self) -> bool:
        return self.action.is_blocked

    @property
    def is_assertion(self) -> bool:
        return self.action.is_assertion

    @property
    def from_store(self) -> bool:
        return bool(self.matched_by and self.matched_by.startswith("store:"))


# ============================================================================
# Hint handling
# ============================================================================

def _infer_action_from_hints(text: str, hints: ExtractedHints) -> Optional[Action]:
    """Guess the action from the verb when only locator hints identify the element"""
    locator = locator_from_hints(hints.locator)
    if locator is None:
        return None

    lowered = text.lower()
    if re.search(r"\b(?:click|press)", lowered):
        return Action(ActionKind.CLICK, locator=locator)
    if re.search(r"\b(?:enter|type|fill)", lowered):
        quoted = re.search(r"[\"']([^\"']+)[\"']", text)
        value = ValueSpec(ValueType.LITERAL, quoted.group(1)) if quoted else None
        return Action(ActionKind.FILL, locator=locator, value=value)
    if re.search(r"\b(?:see|visible|display)", lowered):
        return Action(ActionKind.ASSERT_VISIBLE, locator=locator)
    if re.search(r"\b(?:check|select)", lowered):
        return Action(ActionKind.CHECK, locator=locator)
    return Action(ActionKind.CLICK, locator=locator)


def _apply_hints(action: Action, hints: ExtractedHints) -> Action:
    behavior = hints.behavior
    module_method = behavior.module_method()
    if module_method:
        module, method = module_method
        action = Action(ActionKind.CALL_MODULE, module=module, method=method)

    if hints.locator.present and action.kind in _LOCATOR_KINDS:
        locator = locator_from_hints(hints.locator)
        # A bare role hint keeps the accessible name the pattern found
        if (locator.strategy == LocatorStrategy.ROLE and not locator.value
                and action.locator is not None and action.locator.value):
            locator = replace(locator, value=action.locator.value)
        action = replace(action, locator=locator)

    if behavior.timeout is not None:
        action = replace(action, timeout_ms=behavior.timeout)

    return action


# ============================================================================
# Mapping
# ============================================================================

def map_step_text(text: str,
                  glossary: Optional[Glossary] = None,
                  store_fallback: Optional[StoreFallback] = None) -> StepMappingResult:
    """
    Map a single step to an action

    Args:
        text: Raw step text as authored
        glossary: Glossary to normalize with (defaults to the built-in table)
        store_fallback: Learned-pattern lookup, consulted only when no
            built-in pattern and no hint resolves the step

    Returns:
        StepMappingResult; ``action.source_text`` is always ``text``
    """
    hints = extract_hints(text)
    normalized = normalize_step_text(hints.clean_text, glossary)
    matched_by: Optional[str] = None
    action: Optional[Action] = None

    match = match_pattern(normalized)
    if match is not None:
        pattern, action = match
        matched_by = pattern.name
        action = _apply_hints(action, hints)
    elif hints.behavior.module_method():
        action = _apply_hints(Action(ActionKind.CALL_MODULE), hints)
        matched_by = "hints"
    elif hints.locator.present:
        action = _infer_action_from_hints(hints.clean_text, hints)
        if action is not None:
            action = _apply_hints(action, hints)
            matched_by = "hints"

    if action is None and store_fallback is not None:
        learned = store_fallback(hints.clean_text)
        if learned is not None:
            record_id, action = learned
            matched_by = f"store:{record_id}"
            logger.debug(f"Step mapped from learned pattern {record_id}: {text}")

    if action is None:
        action = Action(ActionKind.BLOCKED, blocked=categorize_blocked(hints.clean_text))

    action = replace(action, source_text=text, matched_by=matched_by)
    return StepMappingResult(
        source_text=text,
        normalized_text=normalized,
        action=action,
        matched_by=matched_by,
        warnings=list(hints.warnings),
    )


def map_steps(steps: List[str],
              glossary: Optional[Glossary] = None,
              store_fallback: Optional[StoreFallback] = None) -> List[StepMappingResult]:
    return [map_step_text(step, glossary, store_fallback) for step in steps]


def map_acceptance_criterion(criterion: AcceptanceCriterion,
                             procedural_steps: Optional[List[ProceduralStep]] = None,
                             glossary: Optional[Glossary] = None,
                             store_fallback: Optional[StoreFallback] = None) -> List[StepMappingResult]:
    """
    Map a criterion's bullet steps plus any procedural steps linked to it

    A linked procedural step whose text already appears among the bullets
    is not mapped twice.
    """
    texts = list(criterion.steps)
    seen = {step.strip().lower() for step in texts}
    for step in procedural_steps or []:
        if step.linked_criterion != criterion.criterion_id:
            continue
        key = step.text.strip().lower()
        if key not in seen:
            texts.append(step.text)
            seen.add(key)
    return map_steps(texts, glossary, store_fallback)


def map_procedural_step(step: ProceduralStep,
                        glossary: Optional[Glossary] = None,
                        store_fallback: Optional[StoreFallback] = None) -> StepMappingResult:
    return map_step_text(step.text, glossary, store_fallback)


def get_mapping_stats(results: List[StepMappingResult]) -> Dict[str, Any]:
    """Counts of mapped/blocked steps and blocked steps per category"""
    total = len(results)
    blocked = [r for r in results if r.is_blocked]
    mapped = total - len(blocked)

    by_category: Dict[str, int] = {}
    for result in blocked:
        reason = result.action.blocked
        category = getattr(reason, "category", None)
        key = category.value if category is not None else "unknown"
        by_category[key] = by_category.get(key, 0) + 1

    return {
        "total": total,
        "mapped": mapped,
        "blocked": len(blocked),
        "actions": sum(1 for r in results if not r.is_blocked and not r.is_assertion),
        "assertions": sum(1 for r in results if r.is_assertion),
        "from_store": sum(1 for r in results if r.from_store),
        "mapping_rate": round(mapped / total, 4) if total else 1.0,
        "blocked_by_category": dict(sorted(by_category.items())),
    }


__all__ = [
    "StepMappingResult",
    "StoreFallback",
    "map_step_text",
    "map_steps",
    "map_acceptance_criterion",
    "map_procedural_step",
    "get_mapping_stats",
]
