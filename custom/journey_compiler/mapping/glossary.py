"""
Glossary - Synonym canonicalization for step text

Each entry maps a canonical term to synonyms that cannot plausibly mean
anything else in a UI test step. Ambiguous words ("select", "save",
"input", "type", "close") are deliberately absent: "Select the Submit
button" must stay a selection verb so the trailing role keyword decides
what it means.

Removing a synonym changes pattern coverage. Run
``check_glossary_coverage()`` (mapping.coverage) after any edit.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from journey_compiler.utils.logger import get_logger


logger = get_logger("glossary")

GLOSSARY_VERSION = 1

# Quoted strings are never rewritten. An apostrophe inside a word
# ("user's") does not open a quote.
QUOTED_REGEX = re.compile(r"(?<!\w)(['\"])[^'\"]+\1(?!\w)")
_TOKEN_REGEX = re.compile(r"\S+")


# ============================================================================
# Data Models
# ============================================================================

@dataclass(frozen=True)
class GlossaryEntry:
    """One canonical term and its synonyms"""
    canonical: str
    synonyms: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"canonical": self.canonical, "synonyms": list(self.synonyms)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GlossaryEntry':
        return cls(
            canonical=str(data["canonical"]),
            synonyms=tuple(str(s) for s in data.get("synonyms", [])),
        )


@dataclass(frozen=True)
class ModuleMethod:
    """Phrase resolving to a support module call (e.g. "log in" -> auth.login)"""
    phrase: str
    module: str
    method: str

    def to_dict(self) -> Dict[str, Any]:
        return {"phrase": self.phrase, "module": self.module, "method": self.method}


DEFAULT_ENTRIES: Tuple[GlossaryEntry, ...] = (
    GlossaryEntry("click", ("tap", "taps")),
    GlossaryEntry("enter", ("write", "writes", "key in", "keys in")),
    GlossaryEntry("navigate", ("visit", "visits", "browse to", "browses to")),
    GlossaryEntry("see", ("observe", "observes", "notice", "notices")),
    GlossaryEntry("visible", ("displayed", "shown")),
    GlossaryEntry("button", ("btn", "cta")),
    GlossaryEntry("field", ("textbox", "text field", "text input", "input field", "inputbox")),
    GlossaryEntry("dropdown", ("combobox", "combo box", "picker", "listbox", "list box", "select box")),
    GlossaryEntry("checkbox", ("chkbox", "tickbox", "tick box")),
    GlossaryEntry("login", ("log in", "logs in", "sign in", "signs in", "signin")),
    GlossaryEntry("logout", ("log out", "logs out", "sign out", "signs out", "signout")),
    GlossaryEntry("success", ("successful",)),
    GlossaryEntry("error", ("failure",)),
    GlossaryEntry("toast", ("notification", "snackbar")),
    GlossaryEntry("modal", ("dialog", "popup", "pop-up", "lightbox")),
    GlossaryEntry("page", ("screen",)),
)

DEFAULT_MODULE_METHODS: Tuple[ModuleMethod, ...] = (
    ModuleMethod("login", "auth", "login"),
    ModuleMethod("logout", "auth", "logout"),
)


# ============================================================================
# Glossary
# ============================================================================

@dataclass
class Glossary:
    """
    Synonym table with optional extensions

    Core entries always win. Extension entries (user glossary files) only
    add terms the core does not already map.
    """
    entries: List[GlossaryEntry] = field(default_factory=lambda: list(DEFAULT_ENTRIES))
    module_methods: List[ModuleMethod] = field(default_factory=lambda: list(DEFAULT_MODULE_METHODS))
    extensions: List[GlossaryEntry] = field(default_factory=list)

    def __post_init__(self):
        self._build()

    def _build(self) -> None:
        words: Dict[str, str] = {}
        phrases: Dict[str, str] = {}

        def register(term: str, canonical: str, core: bool) -> None:
            key = term.lower().strip()
            target = phrases if " " in key else words
            if key in target and not core:
                return
            target.setdefault(key, canonical)

        for entry in self.entries:
            register(entry.canonical, entry.canonical, core=True)
            for synonym in entry.synonyms:
                register(synonym, entry.canonical, core=True)

        for entry in self.extensions:
            for synonym in (entry.canonical,) + tuple(entry.synonyms):
                register(synonym, entry.canonical, core=False)

        self._words = words
        # Longest phrase first so "text input" wins over "input"
        self._phrases = sorted(phrases.items(), key=lambda item: (-len(item[0]), item[0]))
        self._phrase_regexes = [
            (re.compile(r"(?<![\w'\"])" + re.escape(phrase) + r"(?![\w'\"])", re.IGNORECASE), canonical)
            for phrase, canonical in self._phrases
        ]

    def extend(self, entries: Iterable[GlossaryEntry]) -> None:
        """Add extension entries; they never override core mappings"""
        self.extensions.extend(entries)
        self._build()

    def resolve(self, term: str) -> str:
        """Canonical form of ``term``, or ``term`` unchanged"""
        key = term.lower().strip()
        if " " in key:
            for phrase, canonical in self._phrases:
                if phrase == key:
                    return canonical
            return term
        return self._words.get(key, term)

    def find_module_method(self, text: str) -> Optional[ModuleMethod]:
        """Longest module phrase contained in ``text``"""
        lowered = text.lower()
        best: Optional[ModuleMethod] = None
        for mapping in self.module_methods:
            phrase = mapping.phrase.lower()
            if re.search(r"\b" + re.escape(phrase) + r"\b", lowered):
                if best is None or len(phrase) > len(best.phrase):
                    best = mapping
        return best

    def normalize(self, text: str) -> str:
        """
        Replace synonyms with canonical terms

        Multi-word phrases are replaced first, then single words. Quoted
        strings are kept verbatim. The result is idempotent:
        ``normalize(normalize(t)) == normalize(t)``.

        Examples:
            >>> Glossary().normalize("User taps the 'Save' btn")
            "User click the 'Save' button"
        """
        quoted: List[str] = []

        def stash(match: re.Match) -> str:
            quoted.append(match.group(0))
            return f"\x00{len(quoted) - 1}\x00"

        working = QUOTED_REGEX.sub(stash, text)

        for regex, canonical in self._phrase_regexes:
            working = regex.sub(canonical, working)

        parts: List[str] = []
        for match in _TOKEN_REGEX.finditer(working):
            token = match.group(0)
            if token.startswith("\x00") or token.startswith(("'", '"')):
                parts.append(token)
                continue
            stripped = token.rstrip(".,;:!?")
            suffix = token[len(stripped):]
            canonical = self._words.get(stripped.lower())
            parts.append((canonical + suffix) if canonical else token)

        result = " ".join(parts)
        return re.sub(r"\x00(\d+)\x00", lambda m: quoted[int(m.group(1))], result)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": GLOSSARY_VERSION,
            "entries": [e.to_dict() for e in self.entries],
            "moduleMethods": [m.to_dict() for m in self.module_methods],
        }


# ============================================================================
# Loading
# ============================================================================

def load_glossary(path: Optional[Union[str, Path]] = None) -> Glossary:
    """
    Build a glossary from the defaults plus an optional YAML extension file

    The file uses the same shape as ``Glossary.to_dict()``. A missing or
    malformed file logs a warning and yields the defaults.
    """
    glossary = Glossary()
    if path is None:
        return glossary

    glossary_path = Path(path)
    if not glossary_path.exists():
        logger.warning(f"⚠️  Glossary file not found at {glossary_path}, using defaults")
        return glossary

    with open(glossary_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("entries", []), list):
        logger.warning(f"⚠️  Invalid glossary file at {glossary_path}, using defaults")
        return glossary

    extensions = [GlossaryEntry.from_dict(item) for item in data.get("entries", []) if "canonical" in item]
    glossary.extend(extensions)

    known_phrases = {m.phrase.lower() for m in glossary.module_methods}
    for item in data.get("moduleMethods", []) or []:
        phrase = str(item.get("phrase", "")).lower()
        if phrase and phrase not in known_phrases and item.get("module") and item.get("method"):
            glossary.module_methods.append(ModuleMethod(phrase, item["module"], item["method"]))

    logger.info(f"✓ Loaded {len(extensions)} glossary extension entries from {glossary_path}")
    return glossary


_default_glossary: Optional[Glossary] = None


def get_default_glossary() -> Glossary:
    global _default_glossary
    if _default_glossary is None:
        _default_glossary = Glossary()
    return _default_glossary


def normalize_step_text(text: str, glossary: Optional[Glossary] = None) -> str:
    """Collapse whitespace and canonicalize synonyms"""
    collapsed = re.sub(r"\s+", " ", text).strip()
    return (glossary or get_default_glossary()).normalize(collapsed)


__all__ = [
    "GlossaryEntry",
    "ModuleMethod",
    "Glossary",
    "DEFAULT_ENTRIES",
    "DEFAULT_MODULE_METHODS",
    "load_glossary",
    "get_default_glossary",
    "normalize_step_text",
]
