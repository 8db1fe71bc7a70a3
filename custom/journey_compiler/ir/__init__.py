"""
IR Module

Intermediate representation types. The builder lives in
``journey_compiler.ir.builder``.
"""

from .types import (
    ActionKind,
    ASSERTION_KINDS,
    LocatorStrategy,
    ValueType,
    BlockedCategory,
    Locator,
    ValueSpec,
    BlockedReason,
    LegacyBlockedReason,
    Action,
    IRStep,
    IRJourney,
)

__all__ = [
    "ActionKind",
    "ASSERTION_KINDS",
    "LocatorStrategy",
    "ValueType",
    "BlockedCategory",
    "Locator",
    "ValueSpec",
    "BlockedReason",
    "LegacyBlockedReason",
    "Action",
    "IRStep",
    "IRJourney",
]
