"""
Machine hints - explicit locator and behavior overrides inside step text

A step may end with one or more parenthesized ``key=value`` blocks:

    Click the Save button (role=button, exact=true)
    Open the account menu (testid=account-menu)
    Wait for the report (signal="report-ready", timeout=15000)

Hints are removed before pattern matching. Locator hints then override
whatever locator the matched pattern inferred.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from journey_compiler.ir.types import Locator, LocatorStrategy


_VALUE = r"(?:\"[^\"]+\"|'[^']+'|[^,)\s]+)"
HINTS_SECTION_PATTERN = re.compile(r"\(\s*[a-z]+=" + _VALUE + r"(?:\s*,\s*[a-z]+=" + _VALUE + r")*\s*\)", re.IGNORECASE)
HINT_PAIR_PATTERN = re.compile(r"([a-z]+)=(?:\"([^\"]+)\"|'([^']+)'|([^,)\s]+))", re.IGNORECASE)

HINT_VALUE_PATTERNS: Dict[str, re.Pattern] = {
    "role": re.compile(r"^[a-z]+$", re.IGNORECASE),
    "testid": re.compile(r"^[A-Za-z0-9_.:-]+$"),
    "label": re.compile(r"^.+$"),
    "text": re.compile(r"^.+$"),
    "exact": re.compile(r"^(?:true|false)$", re.IGNORECASE),
    "level": re.compile(r"^[1-6]$"),
    "signal": re.compile(r"^[A-Za-z0-9_.:-]+$"),
    "module": re.compile(r"^[A-Za-z0-9_]+\.[A-Za-z0-9_]+$"),
    "wait": re.compile(r"^(?:networkidle|domcontentloaded|load|commit)$", re.IGNORECASE),
    "timeout": re.compile(r"^\d+$"),
}

VALID_ROLES = frozenset({
    "alert", "alertdialog", "application", "article", "banner", "button", "cell",
    "checkbox", "columnheader", "combobox", "complementary", "contentinfo",
    "definition", "dialog", "directory", "document", "feed", "figure", "form",
    "grid", "gridcell", "group", "heading", "img", "link", "list", "listbox",
    "listitem", "log", "main", "marquee", "math", "menu", "menubar", "menuitem",
    "menuitemcheckbox", "menuitemradio", "navigation", "none", "note", "option",
    "presentation", "progressbar", "radio", "radiogroup", "region", "row",
    "rowgroup", "rowheader", "scrollbar", "search", "searchbox", "separator",
    "slider", "spinbutton", "status", "switch", "tab", "table", "tablist",
    "tabpanel", "term", "textbox", "timer", "toolbar", "tooltip", "tree",
    "treegrid", "treeitem",
})


@dataclass
class LocatorHints:
    role: Optional[str] = None
    testid: Optional[str] = None
    label: Optional[str] = None
    text: Optional[str] = None
    exact: bool = False
    level: Optional[int] = None

    @property
    def present(self) -> bool:
        return bool(self.role or self.testid or self.label or self.text)


@dataclass
class BehaviorHints:
    signal: Optional[str] = None
    module: Optional[str] = None
    wait: Optional[str] = None
    timeout: Optional[int] = None

    @property
    def present(self) -> bool:
        return bool(self.signal or self.module or self.wait or self.timeout is not None)

    def module_method(self) -> Optional[Tuple[str, str]]:
        if not self.module or self.module.count(".") != 1:
            return None
        module, method = self.module.split(".")
        return module, method


@dataclass
class ExtractedHints:
    locator: LocatorHints = field(default_factory=LocatorHints)
    behavior: BehaviorHints = field(default_factory=BehaviorHints)
    clean_text: str = ""
    warnings: List[str] = field(default_factory=list)
    count: int = 0

    @property
    def has_hints(self) -> bool:
        return self.count > 0


def contains_hints(text: str) -> bool:
    return HINTS_SECTION_PATTERN.search(text) is not None


def remove_hints(text: str) -> str:
    return re.sub(r"\s{2,}", " ", HINTS_SECTION_PATTERN.sub("", text)).strip()


def extract_hints(text: str) -> ExtractedHints:
    """
    Parse every hint block in ``text``

    Unknown keys, malformed values and unknown ARIA roles produce warnings
    rather than errors. A malformed value is ignored; an unknown role is
    still applied.
    """
    result = ExtractedHints(clean_text=text)
    if not contains_hints(text):
        return result

    for section in HINTS_SECTION_PATTERN.finditer(text):
        for match in HINT_PAIR_PATTERN.finditer(section.group(0)):
            key = match.group(1).lower()
            value = match.group(2) or match.group(3) or match.group(4) or ""

            validator = HINT_VALUE_PATTERNS.get(key)
            if validator is None:
                result.warnings.append(f"Unknown hint type: {key}")
                continue
            if not validator.match(value):
                result.warnings.append(f"Invalid value for hint {key}: {value}")
                continue
            if key == "role" and value.lower() not in VALID_ROLES:
                result.warnings.append(f"Invalid ARIA role: {value}")

            result.count += 1
            if key == "exact":
                result.locator.exact = value.lower() == "true"
            elif key == "level":
                result.locator.level = int(value)
            elif key == "timeout":
                result.behavior.timeout = int(value)
            elif key in ("role", "testid", "label", "text"):
                setattr(result.locator, key, value.lower() if key == "role" else value)
            else:
                setattr(result.behavior, key, value)

    result.clean_text = remove_hints(text)
    return result


def locator_from_hints(hints: LocatorHints) -> Optional[Locator]:
    """Priority: testid, then role (named by label), then label, then text"""
    if hints.testid:
        return Locator(LocatorStrategy.TESTID, hints.testid)
    if hints.role:
        return Locator(LocatorStrategy.ROLE, hints.label or "", role=hints.role,
                       exact=hints.exact, level=hints.level)
    if hints.label:
        return Locator(LocatorStrategy.LABEL, hints.label, exact=hints.exact)
    if hints.text:
        return Locator(LocatorStrategy.TEXT, hints.text, exact=hints.exact)
    return None


__all__ = [
    "VALID_ROLES",
    "LocatorHints",
    "BehaviorHints",
    "ExtractedHints",
    "contains_hints",
    "remove_hints",
    "extract_hints",
    "locator_from_hints",
]
