"""
Glossary coverage check

Every glossary synonym is substituted into probe sentences, normalized, and
run through the pattern list. A synonym must reach the same pattern as its
canonical term. Removing a synonym from the table (or adding one that
collides with another group) shows up here before it shows up as a rise in
the blocked rate.

Terms retired from the table because the patterns accept them directly are
checked the same way, and an optional step corpus (text, expected pattern)
is replayed through the normalizer and the patterns.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import yaml

from journey_compiler.mapping.glossary import DEFAULT_ENTRIES, Glossary, GlossaryEntry
from journey_compiler.mapping.patterns import match_pattern


GLOSSARY_PROBES: Dict[str, Sequence[str]] = {
    "click": ("User {term} the 'Save' button",),
    "enter": ("User {term} 'alice' in the 'Name' field",),
    "navigate": ("User {term} /settings",),
    "see": ("User should {term} 'Welcome back'",),
    "visible": ("Verify the success message is {term}",),
    "button": ("Click the 'Save' {term}",),
    "field": ("User enters 'alice' in the 'Name' {term}",),
    "dropdown": ("User selects 'USA' from the country {term}",),
    "checkbox": ("User checks the terms {term}",),
    "login": ("User {term}",),
    "logout": ("User {term}",),
    "success": ("A {term} toast appears",),
    "error": ("An {term} toast appears",),
    "toast": ("A success {term} appears",),
    "modal": ("User closes the {term}",),
    "page": ("User navigates to the Settings {term}",),
}

# Dropped from the table; the click patterns take these verbs directly
RETIRED_SYNONYMS: Dict[str, Sequence[str]] = {
    "click": ("press", "presses"),
}

Corpus = Sequence[Tuple[str, Optional[str]]]


@dataclass(frozen=True)
class CoverageIssue:
    canonical: str
    term: str
    probe: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"canonical": self.canonical, "term": self.term, "probe": self.probe, "message": self.message}


def _pattern_name(text: str, glossary: Glossary) -> Optional[str]:
    match = match_pattern(glossary.normalize(text))
    return match[0].name if match else None


def load_pattern_corpus(path: Union[str, Path]) -> List[Tuple[str, Optional[str]]]:
    """
    Read a step corpus file

    The file holds a ``steps`` list of ``{text, pattern}`` entries; a null
    pattern means the step must stay blocked.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return [(step["text"], step.get("pattern")) for step in data.get("steps", [])]


def check_glossary_coverage(glossary: Optional[Glossary] = None,
                            baseline: Optional[Sequence[GlossaryEntry]] = None,
                            probes: Optional[Dict[str, Sequence[str]]] = None,
                            retired: Optional[Dict[str, Sequence[str]]] = None,
                            corpus: Optional[Corpus] = None) -> List[CoverageIssue]:
    """
    Report synonyms that no longer reach their canonical term's pattern

    Args:
        glossary: Glossary under test (defaults to the built-in table)
        baseline: Entries whose synonyms must stay covered (defaults to the
            built-in entries, so a removal from ``glossary`` is detected)
        probes: Probe sentences per canonical term, with a ``{term}`` slot
        retired: Terms no longer in the table that must still reach the
            canonical term's pattern (defaults to RETIRED_SYNONYMS)
        corpus: (step text, expected pattern name or None) pairs to replay

    Returns:
        List of issues (empty when coverage is intact)
    """
    glossary = glossary or Glossary()
    baseline = baseline if baseline is not None else DEFAULT_ENTRIES
    probes = probes or GLOSSARY_PROBES
    retired = retired if retired is not None else RETIRED_SYNONYMS
    issues: List[CoverageIssue] = []

    owners: Dict[str, str] = {}
    for entry in glossary.entries:
        for term in (entry.canonical,) + tuple(entry.synonyms):
            key = term.lower()
            owner = owners.get(key)
            if owner is not None and owner != entry.canonical:
                issues.append(CoverageIssue(entry.canonical, term, "",
                                            f"'{term}' appears in both '{owner}' and '{entry.canonical}'"))
            owners.setdefault(key, entry.canonical)

    for entry in baseline:
        templates = probes.get(entry.canonical)
        if not templates:
            issues.append(CoverageIssue(entry.canonical, entry.canonical, "",
                                        f"No probe sentence for '{entry.canonical}'"))
            continue

        terms = tuple(entry.synonyms) + tuple(retired.get(entry.canonical, ()))
        for template in templates:
            probe = template.format(term=entry.canonical)
            expected = _pattern_name(probe, glossary)
            if expected is None:
                issues.append(CoverageIssue(entry.canonical, entry.canonical, probe,
                                            "Canonical probe matches no pattern"))
                continue

            for synonym in terms:
                synonym_probe = template.format(term=synonym)
                actual = _pattern_name(synonym_probe, glossary)
                if actual != expected:
                    issues.append(CoverageIssue(
                        entry.canonical, synonym, synonym_probe,
                        f"Expected pattern '{expected}', got '{actual or 'blocked'}'",
                    ))

    for text, expected_name in corpus or ():
        actual = _pattern_name(text, glossary)
        if actual != expected_name:
            issues.append(CoverageIssue(
                "corpus", text, text,
                f"Expected pattern '{expected_name or 'blocked'}', got '{actual or 'blocked'}'",
            ))

    return issues


__all__ = [
    "GLOSSARY_PROBES",
    "RETIRED_SYNONYMS",
    "CoverageIssue",
    "check_glossary_coverage",
    "load_pattern_corpus",
]
