"""
Journey Extractor Module

Parse journey documents (YAML frontmatter + Markdown body) into Journey objects.
"""

from .journey_parser import (
    JourneyExtractor,
    Journey,
    JourneyStatus,
    JourneyTier,
    AcceptanceCriterion,
    ProceduralStep,
    CompletionSignal,
    CompletionType,
    FINALIZED_STATUSES,
    parse_journey_content,
    validate_for_compile,
    load_journey,
)

__all__ = [
    "JourneyExtractor",
    "Journey",
    "JourneyStatus",
    "JourneyTier",
    "AcceptanceCriterion",
    "ProceduralStep",
    "CompletionSignal",
    "CompletionType",
    "FINALIZED_STATUSES",
    "parse_journey_content",
    "validate_for_compile",
    "load_journey",
]
