"""
Blocked-step categorizer

Explains why a step could not be mapped. Uses the same keyword taxonomy
as the pattern groups (click, fill, select, navigate, see, toast, wait), so
the reason text always points at the pattern family the author was aiming
for.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from journey_compiler.ir.types import BlockedCategory, BlockedReason


BLOCKED_SUMMARY = "Could not map step"

# First hit wins. Assertion keywords precede interaction keywords so that
# "verify the checkbox is checked" is treated as an assertion.
CATEGORY_KEYWORDS: List[Tuple[BlockedCategory, re.Pattern]] = [
    (BlockedCategory.TOAST, re.compile(r"\b(?:toast|notification|snackbar)\b", re.IGNORECASE)),
    (BlockedCategory.ASSERTION, re.compile(
        r"\b(?:verify|verifies|confirm|confirms|ensure|ensures|assert|expect|should|sees?|visible|"
        r"displayed|shows?|shown|contains?)\b", re.IGNORECASE)),
    (BlockedCategory.SELECT, re.compile(r"\b(?:selects?|chooses?|dropdown|option)\b", re.IGNORECASE)),
    (BlockedCategory.FILL, re.compile(r"\b(?:enters?|types?|fills?|inputs?|field)\b", re.IGNORECASE)),
    (BlockedCategory.CLICK, re.compile(
        r"\b(?:clicks?|press(?:es)?|taps?|submits?|checks?|unchecks?|hovers?|button|link)\b", re.IGNORECASE)),
    (BlockedCategory.NAVIGATION, re.compile(
        r"\b(?:navigates?|go(?:es)?\s+to|opens?|visits?|url|page|login|logout)\b", re.IGNORECASE)),
    (BlockedCategory.WAIT, re.compile(r"\b(?:waits?|until|loads?|loading)\b", re.IGNORECASE)),
]

CATEGORY_SUGGESTIONS: Dict[BlockedCategory, str] = {
    BlockedCategory.CLICK: "Name the element and its role, e.g. Click the 'Label' button",
    BlockedCategory.FILL: "Quote the value and the field label, e.g. Enter 'value' in the 'Label' field",
    BlockedCategory.SELECT: "Quote the option and name the dropdown, e.g. Select 'Option' from the 'Label' dropdown",
    BlockedCategory.NAVIGATION: "Give an explicit path, e.g. Navigate to /path",
    BlockedCategory.ASSERTION: "Add an explicit expected value or locator",
    BlockedCategory.TOAST: "Quote the expected message, e.g. A success toast appears with 'Saved'",
    BlockedCategory.WAIT: "Name the element or URL to wait for, e.g. Wait for the 'Results' table to appear",
    BlockedCategory.UNKNOWN: "Rephrase with a supported pattern or add a locator hint such as (testid=...)",
}


def categorize_blocked_category(text: str) -> BlockedCategory:
    for category, regex in CATEGORY_KEYWORDS:
        if regex.search(text):
            return category
    return BlockedCategory.UNKNOWN


def categorize_blocked(text: str, detail: Optional[str] = None) -> BlockedReason:
    """
    Diagnostic for a step that matched no pattern

    Examples:
        >>> reason = categorize_blocked("Verify the dashboard shows correct totals")
        >>> reason.category.value, reason.suggestion
        ('assertion', 'Add an explicit expected value or locator')
    """
    category = categorize_blocked_category(text)
    return BlockedReason(
        summary=BLOCKED_SUMMARY,
        category=category,
        suggestion=CATEGORY_SUGGESTIONS[category],
        detail=detail if detail is not None else f'Could not map step: "{text}"',
    )


# ============================================================================
# Telemetry categories
# ============================================================================

_STEP_CATEGORY_RULES: List[Tuple[str, re.Pattern]] = [
    ("navigation", re.compile(r"\b(?:navigate|go\s+to|open|visit)", re.IGNORECASE)),
    ("interaction", re.compile(r"\b(?:click|fill|enter|type|select|check|press|submit|input)", re.IGNORECASE)),
    ("assertion", re.compile(
        r"\b(?:see|visible|verify|assert|confirm|should|ensure|expect|display)", re.IGNORECASE)),
    ("wait", re.compile(r"\b(?:wait|load|until)", re.IGNORECASE)),
]


def categorize_step_text(text: str) -> str:
    """Coarse category for reporting: navigation, interaction, assertion, wait or unknown"""
    for category, regex in _STEP_CATEGORY_RULES:
        if regex.search(text):
            return category
    return "unknown"


def suggest_improvements(blocked_steps: Iterable[str]) -> List[str]:
    """One rephrasing hint per blocked step text"""
    suggestions: List[str] = []
    for text in blocked_steps:
        lowered = text.lower()
        if re.search(r"\b(?:navigate|go\s+to|open|visit)", lowered):
            suggestions.append(f'"{text}" - Try: "User navigates to /path" or "User opens /path"')
        elif re.search(r"\b(?:click|press|tap)", lowered):
            suggestions.append(f'"{text}" - Try: "User clicks \'Button Name\' button" or "Click the \'Label\' button"')
        elif re.search(r"\b(?:fill|enter|type|input)", lowered):
            suggestions.append(f'"{text}" - Try: "User enters \'value\' in \'Field Label\' field"')
        elif re.search(r"\b(?:see|visible|display|verify)", lowered):
            suggestions.append(f'"{text}" - Try: "User should see \'Text\'" or "\'Element\' is visible"')
        else:
            suggestions.append(f'"{text}" - Could not determine intent. Check the patterns documentation.')
    return suggestions


__all__ = [
    "BLOCKED_SUMMARY",
    "CATEGORY_SUGGESTIONS",
    "categorize_blocked",
    "categorize_blocked_category",
    "categorize_step_text",
    "suggest_improvements",
]
