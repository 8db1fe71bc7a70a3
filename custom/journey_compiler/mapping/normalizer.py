"""
Step text normalization for learned-pattern lookup

The glossary (mapping.glossary) prepares text for the built-in patterns.
This module produces the more aggressive canonical form used to compare a
step against pattern store triggers: verb stems, expanded abbreviations,
no actor prefix, lowercase, optionally no stop words. Quoted strings are
preserved.
"""

import re
from typing import Dict, List, Tuple

from journey_compiler.mapping.glossary import QUOTED_REGEX


VERB_STEMS: Dict[str, str] = {
    # click
    "clicking": "click", "clicked": "click", "clicks": "click",
    "tapping": "click", "tapped": "click", "taps": "click", "tap": "click",
    # fill
    "filling": "fill", "filled": "fill", "fills": "fill",
    "entering": "fill", "entered": "fill", "enters": "fill", "enter": "fill",
    "typing": "fill", "typed": "fill", "types": "fill", "type": "fill",
    # select
    "selecting": "select", "selected": "select", "selects": "select",
    "choosing": "select", "chose": "select", "chosen": "select", "chooses": "select", "choose": "select",
    # check / uncheck
    "checking": "check", "checked": "check", "checks": "check",
    "unchecking": "uncheck", "unchecked": "uncheck", "unchecks": "uncheck",
    # navigate
    "navigating": "navigate", "navigated": "navigate", "navigates": "navigate",
    "going": "navigate", "went": "navigate", "goes": "navigate",
    "visiting": "navigate", "visited": "navigate", "visits": "navigate", "visit": "navigate",
    "opening": "navigate", "opened": "navigate", "opens": "navigate",
    # see / verify
    "seeing": "see", "saw": "see", "seen": "see", "sees": "see",
    "verifying": "verify", "verified": "verify", "verifies": "verify",
    "confirming": "verify", "confirmed": "verify", "confirms": "verify",
    "ensuring": "verify", "ensured": "verify", "ensures": "verify",
    # wait
    "waiting": "wait", "waited": "wait", "waits": "wait",
    # submit
    "submitting": "submit", "submitted": "submit", "submits": "submit",
    # press
    "pressing": "press", "pressed": "press", "presses": "press",
    # hover
    "hovering": "hover", "hovered": "hover", "hovers": "hover",
    # focus
    "focusing": "focus", "focused": "focus", "focuses": "focus",
    # clear
    "clearing": "clear", "cleared": "clear", "clears": "clear",
    # assert / expect
    "asserting": "assert", "asserted": "assert", "asserts": "assert",
    "expecting": "expect", "expected": "expect", "expects": "expect",
    # show / display / hide
    "showing": "show", "showed": "show", "shown": "show", "shows": "show",
    "displaying": "display", "displayed": "display", "displays": "display",
    "hiding": "hide", "hid": "hide", "hidden": "hide", "hides": "hide",
    # enable / disable
    "enabling": "enable", "enabled": "enable", "enables": "enable",
    "disabling": "disable", "disabled": "disable", "disables": "disable",
}

ABBREVIATION_EXPANSIONS: Dict[str, str] = {
    "btn": "button",
    "msg": "message",
    "err": "error",
    "pwd": "password",
    "usr": "user",
    "nav": "navigation",
    "pg": "page",
    "txt": "text",
    "img": "image",
    "lbl": "label",
    "chk": "checkbox",
    "chkbox": "checkbox",
    "cb": "checkbox",
    "rb": "radio",
    "dd": "dropdown",
    "dlg": "dialog",
    "lnk": "link",
    "tbl": "table",
    "hdr": "header",
    "ftr": "footer",
    "textbox": "field",
    "text field": "field",
    "text input": "field",
    "input field": "field",
    "combobox": "dropdown",
    "combo box": "dropdown",
    "select box": "dropdown",
    "picker": "dropdown",
    "listbox": "dropdown",
    "sign in": "login",
    "log in": "login",
    "signin": "login",
    "sign out": "logout",
    "log out": "logout",
    "signout": "logout",
    "search box": "search field",
    "search bar": "search field",
}

STOP_WORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "to", "of", "in",
    "for", "on", "with", "at", "by", "from", "up", "into", "then", "there",
    "all", "each", "some", "so", "very", "just", "and",
})

ACTOR_PREFIXES = [
    re.compile(r"^the\s+user\s+", re.IGNORECASE),
    re.compile(r"^user\s+", re.IGNORECASE),
    re.compile(r"^(?:i|we|they)\s+", re.IGNORECASE),
    re.compile(r"^(?:customer|visitor|admin|administrator)\s+", re.IGNORECASE),
]

_ABBREVIATION_REGEXES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\b" + re.escape(abbr) + r"\b", re.IGNORECASE), expansion)
    for abbr, expansion in sorted(ABBREVIATION_EXPANSIONS.items(), key=lambda item: (-len(item[0]), item[0]))
]


def stem_word(word: str) -> str:
    lower = word.lower()
    return VERB_STEMS.get(lower, lower)


def expand_abbreviations(text: str) -> str:
    result = text.lower()
    for regex, expansion in _ABBREVIATION_REGEXES:
        result = regex.sub(expansion, result)
    return result


def remove_actor_prefixes(text: str) -> str:
    result = text.strip()
    for pattern in ACTOR_PREFIXES:
        result = pattern.sub("", result)
    return result.strip()


def remove_stop_words(text: str) -> str:
    return " ".join(word for word in text.split() if word.lower() not in STOP_WORDS)


def normalize_for_matching(text: str, drop_stop_words: bool = False) -> str:
    """
    Canonical lowercase form of a step for comparing against store triggers

    Examples:
        >>> normalize_for_matching("User clicked the 'Save' btn")
        "click the 'Save' button"
        >>> normalize_for_matching("User clicked the 'Save' btn", drop_stop_words=True)
        "click 'Save' button"
    """
    quotes: List[str] = []

    def stash(match: re.Match) -> str:
        quotes.append(match.group(0))
        return f"__q{len(quotes) - 1}__"

    result = QUOTED_REGEX.sub(stash, text.strip())
    result = remove_actor_prefixes(result)
    result = expand_abbreviations(result)

    words = []
    for word in result.split():
        stripped = word.rstrip(".,;:!?")
        if stripped.startswith("__q") or not stripped.isalpha():
            words.append(stripped or word)
        else:
            words.append(stem_word(stripped))
    result = " ".join(words)

    if drop_stop_words:
        result = remove_stop_words(result)

    result = re.sub(r"\s+", " ", result).strip()
    return re.sub(r"__q(\d+)__", lambda m: quotes[int(m.group(1))], result)


def canonical_form(text: str) -> str:
    """Most aggressive normalization: stems, abbreviations, no stop words"""
    return normalize_for_matching(text, drop_stop_words=True)


def are_steps_equivalent(first: str, second: str) -> bool:
    return canonical_form(first) == canonical_form(second)


__all__ = [
    "VERB_STEMS",
    "ABBREVIATION_EXPANSIONS",
    "STOP_WORDS",
    "stem_word",
    "expand_abbreviations",
    "remove_actor_prefixes",
    "remove_stop_words",
    "normalize_for_matching",
    "canonical_form",
    "are_steps_equivalent",
]
