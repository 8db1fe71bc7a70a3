"""
Mapping Module

Glossary normalization, machine hints, the ordered pattern list and the
blocked-step categorizer.
"""

from .glossary import Glossary, GlossaryEntry, load_glossary, normalize_step_text
from .normalizer import normalize_for_matching, canonical_form, are_steps_equivalent
from .hints import extract_hints, remove_hints, contains_hints
from .patterns import (
    PATTERN_VERSION,
    StepPattern,
    ALL_PATTERNS,
    create_value_from_text,
    match_pattern,
    get_pattern_matches,
    get_all_pattern_names,
)
from .categorizer import categorize_blocked, categorize_step_text, suggest_improvements
from .coverage import check_glossary_coverage
from .step_mapper import (
    StepMappingResult,
    map_step_text,
    map_acceptance_criterion,
    map_procedural_step,
    get_mapping_stats,
)

__all__ = [
    "Glossary",
    "GlossaryEntry",
    "load_glossary",
    "normalize_step_text",
    "normalize_for_matching",
    "canonical_form",
    "are_steps_equivalent",
    "extract_hints",
    "remove_hints",
    "contains_hints",
    "PATTERN_VERSION",
    "StepPattern",
    "ALL_PATTERNS",
    "create_value_from_text",
    "match_pattern",
    "get_pattern_matches",
    "get_all_pattern_names",
    "categorize_blocked",
    "categorize_step_text",
    "suggest_improvements",
    "check_glossary_coverage",
    "StepMappingResult",
    "map_step_text",
    "map_acceptance_criterion",
    "map_procedural_step",
    "get_mapping_stats",
]
