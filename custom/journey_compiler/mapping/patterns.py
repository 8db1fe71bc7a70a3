"""
Step Patterns - Ordered phrase patterns mapping step text to IR actions

Patterns are evaluated top to bottom against glossary-normalized text and
the first match wins. Every regex is anchored at both ends and captures
non-greedily. Ordering rules:

- A pattern anchored on a trailing role keyword ("... button") comes before
  any catch-all that would swallow it.
- A pattern that requires a preposition ("from the X dropdown") comes
  before patterns that do not require it.
- Negative visibility assertions come before positive ones.

``tests/fixtures/pattern_corpus.yaml`` pins the expected pattern for a
corpus of step texts. Update it together with any change here and bump
PATTERN_VERSION.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from journey_compiler.ir.types import (
    Action,
    ActionKind,
    BlockedCategory,
    Locator,
    LocatorStrategy,
    ValueSpec,
    ValueType,
)


# MAJOR: behavior change, MINOR: patterns added, PATCH: pattern fixes
PATTERN_VERSION = "1.3.0"

# Fragments shared by several patterns. The glossary folds "displayed" and
# "shown" into "visible", but raw text is accepted too.
_ACTOR = r"(?:(?:the\s+)?user\s+)?"
_THE = r"(?:the\s+)?"
_SHOWN = r"(?:visible|displayed|shown)"
_APPEARS = r"(?:appears?|is\s+(?:shown|visible|displayed)|displays?)"
_VERIFY = r"(?:verify|confirm|check|ensure)\s+(?:that\s+)?"
_CLICK_VERB = r"(?:clicks?|press(?:es)?|taps?|selects?)"
_FILL_VERB = r"(?:enters?|types?|fills?(?:\s+in)?|inputs?)"
_QUOTED = r"[\"']([^\"']+)[\"']"


# ============================================================================
# Pattern Definition
# ============================================================================

Builder = Callable[[re.Match], Optional[Action]]


@dataclass(frozen=True)
class StepPattern:
    """One (regex, builder) pair"""
    name: str
    regex: re.Pattern
    kind: ActionKind
    category: BlockedCategory
    build: Builder

    def match(self, text: str) -> Optional[Action]:
        found = self.regex.match(text)
        if not found:
            return None
        return self.build(found)


def _pattern(name: str, regex: str, kind: ActionKind, category: BlockedCategory,
             build: Builder) -> StepPattern:
    return StepPattern(name, re.compile(regex, re.IGNORECASE), kind, category, build)


# ============================================================================
# Helpers
# ============================================================================

def create_value_from_text(text: str) -> ValueSpec:
    """
    Classify a value

    Examples:
        >>> create_value_from_text("{{email}}").value_type
        <ValueType.ACTOR: 'actor'>
        >>> create_value_from_text("$user.email").value
        'user.email'
        >>> create_value_from_text("order-${runId}").value_type
        <ValueType.GENERATED: 'generated'>
    """
    if re.match(r"^\{\{.+\}\}$", text):
        return ValueSpec(ValueType.ACTOR, text[2:-2].strip())
    if re.search(r"\$\{.+\}", text):
        return ValueSpec(ValueType.GENERATED, text)
    if re.match(r"^\$.+", text):
        return ValueSpec(ValueType.TEST_DATA, text[1:])
    return ValueSpec(ValueType.LITERAL, text)


def _unquote(text: str) -> str:
    return text.replace('"', "").replace("'", "").strip()


def role_locator(role: str, name: str = "") -> Locator:
    return Locator(LocatorStrategy.ROLE, name, role=role)


def label_locator(label: str) -> Locator:
    return Locator(LocatorStrategy.LABEL, _unquote(label))


def text_locator(text: str) -> Locator:
    return Locator(LocatorStrategy.TEXT, _unquote(text))


_ROLE_SUFFIXES = {"button": "button", "link": "link", "tab": "tab", "heading": "heading"}


def parse_selector_to_locator(selector: str) -> Locator:
    """
    Turn a plain-language element description into a locator

    "the Save button" -> role button named "Save", "Email field" -> label
    "Email", anything else -> text.
    """
    clean = re.sub(r"^the\s+", "", selector.strip(), flags=re.IGNORECASE)
    clean = _unquote(clean)

    suffix = re.search(r"\s*\b(button|link|heading)$", clean, re.IGNORECASE)
    if suffix:
        return role_locator(suffix.group(1).lower(), clean[:suffix.start()].strip())

    field = re.search(r"\s*\b(?:input|field)$", clean, re.IGNORECASE)
    if field:
        return label_locator(clean[:field.start()].strip())

    return text_locator(clean)


def _click_target(name: str, suffix: Optional[str]) -> Locator:
    role = _ROLE_SUFFIXES.get((suffix or "").lower())
    if role:
        return role_locator(role, _unquote(name))
    return text_locator(name)


def _build(kind: ActionKind, **fields) -> Builder:
    """Builder for patterns whose action has no captured fields"""
    def build(_match: re.Match) -> Action:
        return Action(kind=kind, **fields)
    return build


# ============================================================================
# Structured steps (**Action**: / **Wait for**: / **Assert**:)
# ============================================================================

STRUCTURED_PATTERNS: List[StepPattern] = [
    _pattern(
        "structured-action-click",
        r"^\*\*Action\*\*:\s*click\s+" + _THE + r"[\"']?(.+?)[\"']?(?:\s+(button|link))?$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CLICK, locator=role_locator(m.group(2).lower() if m.group(2) else "button",
                                                               _unquote(m.group(1)))),
    ),
    _pattern(
        "structured-action-fill",
        r"^\*\*Action\*\*:\s*(?:fill|enter)\s+(?:in\s+)?[\"']?(.+?)[\"']?\s+with\s+[\"']?(.+?)[\"']?$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=parse_selector_to_locator(m.group(1)),
                         value=create_value_from_text(m.group(2))),
    ),
    _pattern(
        "structured-action-navigate",
        r"^\*\*Action\*\*:\s*navigate\s+to\s+[\"']?(.+?)[\"']?$",
        ActionKind.NAVIGATE, BlockedCategory.NAVIGATION,
        lambda m: Action(ActionKind.NAVIGATE, url=m.group(1)),
    ),
    _pattern(
        "structured-wait-for-visible",
        r"^\*\*Wait\s+for\*\*:\s*(.+?)\s+(?:to\s+)?(?:be\s+)?(?:visible|appear|load)s?$",
        ActionKind.WAIT_FOR_VISIBLE, BlockedCategory.WAIT,
        lambda m: Action(ActionKind.WAIT_FOR_VISIBLE, locator=parse_selector_to_locator(m.group(1))),
    ),
    _pattern(
        "structured-assert-visible",
        r"^\*\*Assert\*\*:\s*(.+?)\s+(?:is\s+)?" + _SHOWN + r"$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=parse_selector_to_locator(m.group(1))),
    ),
    _pattern(
        "structured-assert-text",
        r"^\*\*Assert\*\*:\s*(.+?)\s+(?:contains|has\s+text)\s+[\"']?(.+?)[\"']?$",
        ActionKind.ASSERT_TEXT, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_TEXT, locator=parse_selector_to_locator(m.group(1)), text=m.group(2)),
    ),
]


# ============================================================================
# Authentication (module calls)
# ============================================================================

AUTH_PATTERNS: List[StepPattern] = [
    _pattern(
        "login-as-role",
        r"^" + _ACTOR + r"logs?\s*in\s+as\s+(?:an?\s+)?(.+?)(?:\s+user)?$",
        ActionKind.CALL_MODULE, BlockedCategory.NAVIGATION,
        lambda m: Action(ActionKind.CALL_MODULE, module="auth", method="loginAs",
                         args=(_unquote(m.group(1)).lower(),)),
    ),
    _pattern(
        "user-login",
        r"^" + _ACTOR + r"(?:logs?\s*in|login\s+is\s+performed|authenticates?)$",
        ActionKind.CALL_MODULE, BlockedCategory.NAVIGATION,
        _build(ActionKind.CALL_MODULE, module="auth", method="login"),
    ),
    _pattern(
        "user-logout",
        r"^" + _ACTOR + r"(?:logs?\s*out|logout\s+is\s+performed)$",
        ActionKind.CALL_MODULE, BlockedCategory.NAVIGATION,
        _build(ActionKind.CALL_MODULE, module="auth", method="logout"),
    ),
]


# ============================================================================
# Toasts and status messages
# ============================================================================

def _toast(toast_type: Optional[str], group: Optional[int] = None) -> Builder:
    def build(m: re.Match) -> Action:
        message = _unquote(m.group(group)) if group else None
        return Action(ActionKind.ASSERT_TOAST, toast_type=toast_type, message=message or None)
    return build


TOAST_PATTERNS: List[StepPattern] = [
    _pattern(
        "success-toast-message",
        r"^(?:a\s+)?success\s+toast\s+(?:with\s+)?" + _QUOTED + r"\s*(?:message\s+)?" + _APPEARS + r"$",
        ActionKind.ASSERT_TOAST, BlockedCategory.TOAST, _toast("success", 1),
    ),
    _pattern(
        "success-toast-appears-with",
        r"^(?:a\s+)?success\s+toast\s+" + _APPEARS + r"\s+(?:with\s+)?(?:(?:message|text)\s+)?[\"']?(.+?)[\"']?$",
        ActionKind.ASSERT_TOAST, BlockedCategory.TOAST, _toast("success", 1),
    ),
    _pattern(
        "error-toast-message",
        r"^(?:an?\s+)?error\s+toast\s+(?:with\s+)?" + _QUOTED + r"\s*(?:message\s+)?" + _APPEARS + r"$",
        ActionKind.ASSERT_TOAST, BlockedCategory.TOAST, _toast("error", 1),
    ),
    _pattern(
        "error-toast-appears-with",
        r"^(?:an?\s+)?error\s+toast\s+" + _APPEARS + r"\s+(?:with\s+)?(?:(?:message|text)\s+)?[\"']?(.+?)[\"']?$",
        ActionKind.ASSERT_TOAST, BlockedCategory.TOAST, _toast("error", 1),
    ),
    _pattern(
        "toast-appears",
        r"^(?:an?\s+)?(?:(success|error|info|warning)\s+)?toast\s+(?:(?:toast|notification)\s+)?" + _APPEARS + r"$",
        ActionKind.ASSERT_TOAST, BlockedCategory.TOAST,
        lambda m: Action(ActionKind.ASSERT_TOAST, toast_type=(m.group(1) or "info").lower()),
    ),
    _pattern(
        "toast-with-text",
        r"^(?:an?\s+)?toast\s+(?:with\s+)?(?:(?:text|message)\s+)?[\"']?(.+?)[\"']?\s+" + _APPEARS + r"$",
        ActionKind.ASSERT_TOAST, BlockedCategory.TOAST, _toast("info", 1),
    ),
    _pattern(
        "status-message-visible",
        r"^(?:an?\s+)?status\s+(?:message\s+)?" + _QUOTED + r"\s+(?:is\s+)?" + _SHOWN + r"$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.TOAST,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=role_locator("status", m.group(1))),
    ),
    _pattern(
        "verify-status-message",
        r"^" + _VERIFY + _THE + r"status\s+(?:message\s+)?(?:shows?|displays?|contains?)\s+" + _QUOTED + r"$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.TOAST,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=role_locator("status", m.group(1))),
    ),
]


# ============================================================================
# Modals and browser dialogs
# ============================================================================

MODAL_ALERT_PATTERNS: List[StepPattern] = [
    _pattern(
        "dismiss-modal",
        r"^" + _ACTOR + r"(?:dismiss(?:es)?|closes?)\s+" + _THE + r"modal(?:\s+modal)?$",
        ActionKind.DISMISS_MODAL, BlockedCategory.CLICK, _build(ActionKind.DISMISS_MODAL),
    ),
    _pattern(
        "accept-alert",
        r"^" + _ACTOR + r"(?:accepts?|confirms?)\s+" + _THE + r"alert$",
        ActionKind.ACCEPT_ALERT, BlockedCategory.CLICK, _build(ActionKind.ACCEPT_ALERT),
    ),
    _pattern(
        "dismiss-alert",
        r"^" + _ACTOR + r"(?:dismiss(?:es)?|cancels?|closes?)\s+" + _THE + r"alert$",
        ActionKind.DISMISS_ALERT, BlockedCategory.CLICK, _build(ActionKind.DISMISS_ALERT),
    ),
]


# ============================================================================
# Navigation
# ============================================================================

_NAV_VERB = r"(?:navigates?|go(?:es)?|opens?)"
_URL = r"[\"']?((?:/|https?://)[^\"'\s]*)[\"']?"

EXTENDED_NAVIGATION_PATTERNS: List[StepPattern] = [
    _pattern(
        "refresh-page",
        r"^" + _ACTOR + r"(?:refresh(?:es)?|reloads?)\s+" + _THE + r"page$",
        ActionKind.RELOAD, BlockedCategory.NAVIGATION, _build(ActionKind.RELOAD),
    ),
    _pattern(
        "go-back",
        r"^" + _ACTOR + r"(?:go(?:es)?|navigates?)\s+back$",
        ActionKind.GO_BACK, BlockedCategory.NAVIGATION, _build(ActionKind.GO_BACK),
    ),
    _pattern(
        "go-forward",
        r"^" + _ACTOR + r"(?:go(?:es)?|navigates?)\s+forward$",
        ActionKind.GO_FORWARD, BlockedCategory.NAVIGATION, _build(ActionKind.GO_FORWARD),
    ),
]

NAVIGATION_PATTERNS: List[StepPattern] = [
    _pattern(
        "navigate-to-url",
        r"^" + _ACTOR + _NAV_VERB + r"\s+(?:to\s+)?" + _THE + _URL + r"$",
        ActionKind.NAVIGATE, BlockedCategory.NAVIGATION,
        lambda m: Action(ActionKind.NAVIGATE, url=m.group(1)),
    ),
    _pattern(
        "navigate-to-page",
        r"^" + _ACTOR + _NAV_VERB + r"\s+(?:to\s+)?" + _THE + r"(.+?)\s+page$",
        ActionKind.NAVIGATE, BlockedCategory.NAVIGATION,
        lambda m: Action(ActionKind.NAVIGATE,
                         url="/" + re.sub(r"\s+", "-", _unquote(m.group(1)).lower())),
    ),
    _pattern(
        "wait-for-url-change",
        r"^" + _ACTOR + r"waits?\s+(?:for\s+)?" + _THE + r"url\s+(?:to\s+)?(?:change\s+to|contains?|includes?)\s+"
        r"[\"']?([^\"']+)[\"']?$",
        ActionKind.WAIT_FOR_URL, BlockedCategory.WAIT,
        lambda m: Action(ActionKind.WAIT_FOR_URL, pattern=m.group(1)),
    ),
]


# ============================================================================
# Select (prepositional forms precede every click pattern)
# ============================================================================

SELECT_FROM_PATTERNS: List[StepPattern] = [
    _pattern(
        "select-from-dropdown",
        r"^" + _ACTOR + r"(?:selects?|chooses?)\s+" + _QUOTED + r"\s+from\s+" + _THE + r"dropdown$",
        ActionKind.SELECT, BlockedCategory.SELECT,
        lambda m: Action(ActionKind.SELECT, locator=role_locator("combobox"), option=m.group(1)),
    ),
    _pattern(
        "select-option",
        r"^" + _ACTOR + r"(?:selects?|chooses?)\s+" + _QUOTED + r"\s+(?:from|in)\s+" + _THE + _QUOTED
        + r"\s*(?:dropdown|select|menu|list)?$",
        ActionKind.SELECT, BlockedCategory.SELECT,
        lambda m: Action(ActionKind.SELECT, locator=label_locator(m.group(2)), option=m.group(1)),
    ),
    _pattern(
        "select-from-named-dropdown",
        r"^" + _ACTOR + r"(?:selects?|chooses?)\s+" + _QUOTED + r"\s+from\s+" + _THE
        + r"(.+?)\s+(?:dropdown|select|selector|menu|list)$",
        ActionKind.SELECT, BlockedCategory.SELECT,
        lambda m: Action(ActionKind.SELECT, locator=label_locator(m.group(2)), option=m.group(1)),
    ),
]

SELECT_PATTERNS: List[StepPattern] = [
    _pattern(
        "select-option-named",
        r"^" + _ACTOR + r"(?:selects?|chooses?)\s+" + _THE + r"option\s+(?:named\s+)?" + _QUOTED + r"$",
        ActionKind.SELECT, BlockedCategory.SELECT,
        lambda m: Action(ActionKind.SELECT, locator=role_locator("combobox"), option=m.group(1)),
    ),
    _pattern(
        "choose-option-quoted",
        r"^" + _ACTOR + r"chooses?\s+" + _THE + _QUOTED + r"(?:\s+option)?$",
        ActionKind.SELECT, BlockedCategory.SELECT,
        lambda m: Action(ActionKind.SELECT, locator=role_locator("combobox"), option=m.group(1)),
    ),
]


# ============================================================================
# Keyboard
# ============================================================================

_KEY_NAMES: Dict[str, str] = {
    "ctrl": "Control", "control": "Control", "cmd": "Meta", "command": "Meta",
    "esc": "Escape", "del": "Delete", "return": "Enter",
    "pageup": "PageUp", "pagedown": "PageDown",
    "up": "ArrowUp", "down": "ArrowDown", "left": "ArrowLeft", "right": "ArrowRight",
    "arrowup": "ArrowUp", "arrowdown": "ArrowDown", "arrowleft": "ArrowLeft", "arrowright": "ArrowRight",
}

_PRESS_VERB = r"(?:press(?:es)?|hits?)"


def key_name(text: str) -> str:
    """
    Playwright key name for a spoken key or chord

    Examples:
        >>> key_name("ctrl+a")
        'Control+a'
        >>> key_name("f5")
        'F5'
        >>> key_name("arrowdown")
        'ArrowDown'
    """
    parts = []
    for part in text.split("+"):
        part = part.strip()
        if len(part) == 1:
            parts.append(part)
        else:
            parts.append(_KEY_NAMES.get(part.lower(), part[:1].upper() + part[1:]))
    return "+".join(parts)


KEYBOARD_PATTERNS: List[StepPattern] = [
    _pattern(
        "press-enter-key",
        r"^" + _ACTOR + _PRESS_VERB + r"\s+" + _THE + r"(?:enter|return)(?:\s+key)?$",
        ActionKind.PRESS, BlockedCategory.CLICK, _build(ActionKind.PRESS, key="Enter"),
    ),
    _pattern(
        "press-tab-key",
        r"^" + _ACTOR + _PRESS_VERB + r"\s+" + _THE + r"tab(?:\s+key)?$",
        ActionKind.PRESS, BlockedCategory.CLICK, _build(ActionKind.PRESS, key="Tab"),
    ),
    _pattern(
        "press-escape-key",
        r"^" + _ACTOR + _PRESS_VERB + r"\s+" + _THE + r"(?:escape|esc)(?:\s+key)?$",
        ActionKind.PRESS, BlockedCategory.CLICK, _build(ActionKind.PRESS, key="Escape"),
    ),
    _pattern(
        "press-named-key",
        r"^" + _ACTOR + _PRESS_VERB + r"\s+" + _THE + r"[\"']?([A-Za-z0-9]+(?:\+[A-Za-z0-9]+)*)[\"']?\s+key$",
        ActionKind.PRESS, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.PRESS, key=key_name(m.group(1))),
    ),
]


# ============================================================================
# Click
# ============================================================================

EXTENDED_CLICK_PATTERNS: List[StepPattern] = [
    _pattern(
        "click-on-element",
        r"^" + _ACTOR + r"(?:clicks?|selects?)\s+on\s+" + _THE + r"(.+?)(?:\s+(button|link|tab))?$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CLICK, locator=_click_target(m.group(1), m.group(2))),
    ),
    _pattern(
        "double-click",
        r"^" + _ACTOR + r"double[-\s]?clicks?\s+(?:on\s+)?" + _THE + r"[\"']?(.+?)[\"']?$",
        ActionKind.DBLCLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.DBLCLICK, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "right-click",
        r"^" + _ACTOR + r"right[-\s]?clicks?\s+(?:on\s+)?" + _THE + r"[\"']?(.+?)[\"']?$",
        ActionKind.RIGHT_CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.RIGHT_CLICK, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "submit-form",
        r"^" + _ACTOR + r"submits?\s+" + _THE + r"form$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        _build(ActionKind.CLICK, locator=Locator(LocatorStrategy.ROLE, "Submit", role="button")),
    ),
]

CLICK_PATTERNS: List[StepPattern] = [
    _pattern(
        "click-button-quoted",
        r"^" + _ACTOR + _CLICK_VERB + r"\s+(?:on\s+)?" + _THE + _QUOTED + r"\s+button$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CLICK, locator=role_locator("button", m.group(1))),
    ),
    _pattern(
        "click-link-quoted",
        r"^" + _ACTOR + _CLICK_VERB + r"\s+(?:on\s+)?" + _THE + _QUOTED + r"\s+link$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CLICK, locator=role_locator("link", m.group(1))),
    ),
    _pattern(
        "click-menuitem-quoted",
        r"^" + _ACTOR + r"(?:clicks?|selects?)\s+(?:on\s+)?" + _THE + _QUOTED + r"\s+menu\s*item$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CLICK, locator=role_locator("menuitem", m.group(1))),
    ),
    _pattern(
        "click-tab-quoted",
        r"^" + _ACTOR + r"(?:clicks?|selects?)\s+(?:on\s+)?" + _THE + _QUOTED + r"\s+tab$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CLICK, locator=role_locator("tab", m.group(1))),
    ),
    _pattern(
        "click-element-quoted",
        r"^" + _ACTOR + _CLICK_VERB + r"\s+(?:on\s+)?" + _THE + _QUOTED + r"$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CLICK, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "click-element-generic",
        r"^" + _ACTOR + _CLICK_VERB + r"\s+(?:on\s+)?" + _THE + r"(.+?)\s+(button|link|icon|menu|tab)$",
        ActionKind.CLICK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CLICK, locator=_click_target(m.group(1), m.group(2))),
    ),
]


# ============================================================================
# Fill
# ============================================================================

EXTENDED_FILL_PATTERNS: List[StepPattern] = [
    _pattern(
        "fill-field-with-value",
        r"^" + _ACTOR + r"(?:fills?|enters?|types?|inputs?)(?:\s+in)?\s+" + _THE
        + r"[\"']?(.+?)[\"']?\s+(?:field|input)\s+with\s+[\"']?(.+?)[\"']?$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=label_locator(m.group(1)),
                         value=create_value_from_text(_unquote(m.group(2)))),
    ),
    _pattern(
        "type-into-field",
        r"^" + _ACTOR + r"types?\s+" + _QUOTED + r"\s+into\s+" + _THE + r"[\"']?(.+?)[\"']?(?:\s+(?:field|input))?$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=label_locator(m.group(2)),
                         value=create_value_from_text(m.group(1))),
    ),
    _pattern(
        "fill-in-field-no-value",
        r"^" + _ACTOR + r"fills?\s+in\s+" + _THE + r"(?![^\"']*\s(?:in|into|with)\s)([^\"'{}]+?)(?:\s+(?:field|input))?$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=label_locator(m.group(1)),
                         value=ValueSpec(ValueType.ACTOR, re.sub(r"\s+", "_", m.group(1).strip().lower()))),
    ),
    _pattern(
        "clear-field",
        r"^" + _ACTOR + r"clears?\s+" + _THE + r"[\"']?(.+?)[\"']?(?:\s+(?:field|input))?$",
        ActionKind.CLEAR, BlockedCategory.FILL,
        lambda m: Action(ActionKind.CLEAR, locator=label_locator(m.group(1))),
    ),
    _pattern(
        "set-value",
        r"^" + _ACTOR + r"sets?\s+" + _THE + r"(?:value\s+of\s+)?[\"']?(.+?)[\"']?\s+to\s+" + _QUOTED + r"$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=label_locator(re.sub(r"\s+(?:field|input)$", "", m.group(1))),
                         value=create_value_from_text(m.group(2))),
    ),
]

FILL_PATTERNS: List[StepPattern] = [
    _pattern(
        "fill-field-quoted-value",
        r"^" + _ACTOR + _FILL_VERB + r"\s+" + _QUOTED + r"\s+(?:in|into)\s+" + _THE + _QUOTED
        + r"(?:\s*(?:field|input))?$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=label_locator(m.group(2)),
                         value=create_value_from_text(m.group(1))),
    ),
    _pattern(
        "fill-field-actor-value",
        r"^" + _ACTOR + _FILL_VERB + r"\s+(\{\{[^}]+\}\})\s+(?:in|into)\s+" + _THE + r"[\"']?(.+?)[\"']?"
        r"(?:\s+(?:field|input))?$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=label_locator(m.group(2)),
                         value=create_value_from_text(m.group(1))),
    ),
    _pattern(
        "fill-placeholder-field",
        r"^" + _ACTOR + r"(?:enters?|types?|fills?)\s+" + _QUOTED + r"\s+(?:in|into)\s+" + _THE
        + r"(?:field|input)\s+with\s+placeholder\s+" + _QUOTED + r"$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=Locator(LocatorStrategy.PLACEHOLDER, m.group(2)),
                         value=create_value_from_text(m.group(1))),
    ),
    _pattern(
        "fill-field-generic",
        r"^" + _ACTOR + _FILL_VERB + r"\s+(.+?)\s+(?:in|into)\s+" + _THE + r"(.+?)(?:\s+(?:field|input))?$",
        ActionKind.FILL, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FILL, locator=label_locator(m.group(2)),
                         value=create_value_from_text(_unquote(m.group(1)))),
    ),
]


# ============================================================================
# Check / uncheck
# ============================================================================

CHECK_PATTERNS: List[StepPattern] = [
    _pattern(
        "check-checkbox",
        r"^" + _ACTOR + r"(?:checks?|ticks?)\s+" + _THE + _QUOTED + r"(?:\s*(?:checkbox|option))?$",
        ActionKind.CHECK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CHECK, locator=label_locator(m.group(1))),
    ),
    _pattern(
        "check-checkbox-unquoted",
        r"^" + _ACTOR + r"(?:checks?|ticks?)\s+" + _THE + r"(\w+(?:\s+\w+)*?)\s+checkbox$",
        ActionKind.CHECK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.CHECK, locator=label_locator(m.group(1))),
    ),
    _pattern(
        "uncheck-checkbox",
        r"^" + _ACTOR + r"(?:unchecks?|unticks?)\s+" + _THE + _QUOTED + r"(?:\s*(?:checkbox|option))?$",
        ActionKind.UNCHECK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.UNCHECK, locator=label_locator(m.group(1))),
    ),
    _pattern(
        "uncheck-checkbox-unquoted",
        r"^" + _ACTOR + r"(?:unchecks?|unticks?)\s+" + _THE + r"(\w+(?:\s+\w+)*?)\s+checkbox$",
        ActionKind.UNCHECK, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.UNCHECK, locator=label_locator(m.group(1))),
    ),
]


# ============================================================================
# Assertions (negatives first, generic "contains" last)
# ============================================================================

def _count_locator(noun: str) -> Locator:
    return role_locator("row") if noun.lower().startswith("row") else role_locator("listitem")


EXTENDED_ASSERTION_PATTERNS: List[StepPattern] = [
    _pattern(
        "verify-not-visible",
        r"^" + _VERIFY + _THE + r"[\"']?(.+?)[\"']?\s+is\s+not\s+" + _SHOWN + r"$",
        ActionKind.ASSERT_NOT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_NOT_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "element-should-not-be-visible",
        r"^" + _THE + r"[\"']?(.+?)[\"']?\s+(?:should\s+not\s+be|is\s+not)\s+" + _SHOWN + r"$",
        ActionKind.ASSERT_NOT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_NOT_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "should-not-see-text",
        r"^" + _ACTOR + r"should\s+not\s+see\s+" + _THE + _QUOTED + r"$",
        ActionKind.ASSERT_NOT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_NOT_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "verify-url-contains",
        r"^" + _VERIFY + _THE + r"url\s+contains?\s+" + _QUOTED + r"$",
        ActionKind.ASSERT_URL, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_URL, pattern=m.group(1)),
    ),
    _pattern(
        "verify-title-is",
        r"^" + _VERIFY + _THE + r"(?:page\s+)?title\s+(?:is|equals?)\s+" + _QUOTED + r"$",
        ActionKind.ASSERT_TITLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_TITLE, text=m.group(1)),
    ),
    _pattern(
        "verify-field-value",
        r"^" + _VERIFY + _THE + r"[\"']?([\w ]+?)[\"']?\s+(?:field\s+)?has\s+value\s+" + _QUOTED + r"$",
        ActionKind.ASSERT_VALUE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VALUE, locator=label_locator(m.group(1)),
                         value=create_value_from_text(m.group(2))),
    ),
    _pattern(
        "verify-element-enabled",
        r"^" + _VERIFY + _THE + r"[\"']?(.+?)[\"']?\s+(?:button\s+)?is\s+enabled$",
        ActionKind.ASSERT_ENABLED, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_ENABLED, locator=label_locator(m.group(1))),
    ),
    _pattern(
        "verify-element-disabled",
        r"^" + _VERIFY + _THE + r"[\"']?(.+?)[\"']?\s+(?:button\s+|input\s+|field\s+)?is\s+disabled$",
        ActionKind.ASSERT_DISABLED, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_DISABLED, locator=label_locator(m.group(1))),
    ),
    _pattern(
        "verify-checkbox-checked",
        r"^" + _VERIFY + _THE + r"[\"']?(.+?)[\"']?\s+(?:checkbox\s+)?is\s+checked$",
        ActionKind.ASSERT_CHECKED, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_CHECKED, locator=label_locator(m.group(1))),
    ),
    _pattern(
        "verify-count",
        r"^" + _VERIFY + r"(\d+)\s+(items?|elements?|rows?)\s+(?:are\s+)?(?:visible|displayed|shown|exist)$",
        ActionKind.ASSERT_COUNT, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_COUNT, locator=_count_locator(m.group(2)), count=int(m.group(1))),
    ),
    _pattern(
        "verify-element-showing",
        r"^(?:verify|confirm|ensure)\s+(?:that\s+)?" + _THE + r"[\"']?(.+?)[\"']?\s+(?:is\s+)?(?:showing|visible|displayed|shown)$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "page-should-show",
        r"^" + _THE + r"page\s+should\s+(?:show|display|contain)\s+" + _QUOTED + r"$",
        ActionKind.ASSERT_TEXT, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_TEXT, locator=role_locator("main"), text=m.group(1)),
    ),
    _pattern(
        "make-sure-assertion",
        r"^make\s+sure\s+(?:that\s+)?" + _THE + r"(.+?)\s+(?:is\s+)?" + _SHOWN + r"$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "confirm-that-assertion",
        r"^(?:verify|confirm)\s+(?:that\s+)?" + _THE + r"[\"']?(.+?)[\"']?\s+" + _APPEARS + r"$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "check-element-exists",
        r"^check\s+(?:that\s+)?" + _THE + r"[\"']?(.+?)[\"']?\s+(?:exists?|is\s+present)$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "element-contains-text",
        r"^(?!(?:the\s+)?url\s)" + _THE + r"[\"']?(.+?)[\"']?\s+(?:should\s+)?contains?\s+" + _QUOTED + r"$",
        ActionKind.ASSERT_TEXT, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_TEXT, locator=text_locator(m.group(1)), text=m.group(2)),
    ),
]

VISIBILITY_PATTERNS: List[StepPattern] = [
    _pattern(
        "should-see-text",
        r"^" + _ACTOR + r"(?:should\s+)?(?:sees?|views?)\s+" + _THE + _QUOTED + r"$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "is-visible",
        r"^[\"']?([^\"']+?)[\"']?\s+(?:is\s+)?" + _SHOWN + r"$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=text_locator(re.sub(r"^the\s+", "", m.group(1),
                                                                                flags=re.IGNORECASE))),
    ),
    _pattern(
        "should-see-element",
        r"^" + _ACTOR + r"(?:should\s+)?(?:sees?|views?)\s+" + _THE + r"(.+?)\s+(heading|button|link|form|page|element)$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=_click_target(m.group(1), m.group(2))),
    ),
]

URL_PATTERNS: List[StepPattern] = [
    _pattern(
        "url-contains",
        r"^" + _THE + r"url\s+(?:should\s+)?(?:contains?|includes?)\s+[\"']?([^\"'\s]+)[\"']?$",
        ActionKind.ASSERT_URL, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_URL, pattern=m.group(1)),
    ),
    _pattern(
        "url-is",
        r"^" + _THE + r"url\s+(?:should\s+)?(?:is|equals?|be)\s+[\"']?([^\"'\s]+)[\"']?$",
        ActionKind.ASSERT_URL, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_URL, pattern=m.group(1)),
    ),
    _pattern(
        "redirected-to",
        r"^" + _ACTOR + r"(?:is\s+)?redirected\s+to\s+[\"']?([^\"'\s]+)[\"']?$",
        ActionKind.ASSERT_URL, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_URL, pattern=m.group(1)),
    ),
    _pattern(
        "page-displayed",
        r"^" + _THE + r"(.+?)\s+page\s+(?:is\s+)?" + _SHOWN + r"$",
        ActionKind.ASSERT_VISIBLE, BlockedCategory.ASSERTION,
        lambda m: Action(ActionKind.ASSERT_VISIBLE, locator=text_locator(m.group(1))),
    ),
]


# ============================================================================
# Waits
# ============================================================================

EXTENDED_WAIT_PATTERNS: List[StepPattern] = [
    _pattern(
        "wait-for-element-hidden",
        r"^" + _ACTOR + r"waits?\s+(?:for\s+)?" + _THE + r"[\"']?(.+?)[\"']?\s+to\s+(?:disappear|be\s+hidden)$",
        ActionKind.WAIT_FOR_HIDDEN, BlockedCategory.WAIT,
        lambda m: Action(ActionKind.WAIT_FOR_HIDDEN, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "wait-for-element-appear",
        r"^" + _ACTOR + r"waits?\s+(?:for\s+)?" + _THE + r"[\"']?(.+?)[\"']?\s+to\s+(?:appear|show|be\s+"
        + _SHOWN + r")$",
        ActionKind.WAIT_FOR_VISIBLE, BlockedCategory.WAIT,
        lambda m: Action(ActionKind.WAIT_FOR_VISIBLE, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "wait-until-loaded",
        r"^" + _ACTOR + r"waits?\s+until\s+" + _THE + r"(?:page|content|data)\s+(?:is\s+)?loaded$",
        ActionKind.WAIT_FOR_LOADING_COMPLETE, BlockedCategory.WAIT,
        _build(ActionKind.WAIT_FOR_LOADING_COMPLETE),
    ),
    _pattern(
        "wait-seconds",
        r"^" + _ACTOR + r"waits?\s+(?:for\s+)?(\d+)\s+seconds?$",
        ActionKind.WAIT_FOR_TIMEOUT, BlockedCategory.WAIT,
        lambda m: Action(ActionKind.WAIT_FOR_TIMEOUT, timeout_ms=int(m.group(1)) * 1000),
    ),
    _pattern(
        "wait-for-network",
        r"^" + _ACTOR + r"waits?\s+(?:for\s+)?" + _THE + r"network\s+(?:to\s+be\s+)?idle$",
        ActionKind.WAIT_FOR_NETWORK_IDLE, BlockedCategory.WAIT,
        _build(ActionKind.WAIT_FOR_NETWORK_IDLE),
    ),
]

WAIT_PATTERNS: List[StepPattern] = [
    _pattern(
        "wait-for-navigation",
        r"^" + _ACTOR + r"(?:waits?\s+)?(?:for\s+)?navigation\s+to\s+[\"']?([^\"'\s]+)[\"']?$",
        ActionKind.WAIT_FOR_URL, BlockedCategory.WAIT,
        lambda m: Action(ActionKind.WAIT_FOR_URL, pattern=m.group(1)),
    ),
    _pattern(
        "wait-for-page",
        r"^" + _ACTOR + r"(?:waits?\s+)?(?:for\s+)?" + _THE + r"(.+?)\s+page\s+to\s+load$",
        ActionKind.WAIT_FOR_LOADING_COMPLETE, BlockedCategory.WAIT,
        _build(ActionKind.WAIT_FOR_LOADING_COMPLETE),
    ),
]


# ============================================================================
# Hover / focus
# ============================================================================

HOVER_FOCUS_PATTERNS: List[StepPattern] = [
    _pattern(
        "hover-over-element",
        r"^" + _ACTOR + r"hovers?\s+(?:over|on)\s+" + _THE + r"[\"']?(.+?)[\"']?$",
        ActionKind.HOVER, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.HOVER, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "mouse-over",
        r"^" + _ACTOR + r"mouse\s*over\s+" + _THE + r"[\"']?(.+?)[\"']?$",
        ActionKind.HOVER, BlockedCategory.CLICK,
        lambda m: Action(ActionKind.HOVER, locator=text_locator(m.group(1))),
    ),
    _pattern(
        "focus-on-element",
        r"^" + _ACTOR + r"focus(?:es)?\s+(?:on\s+)?" + _THE + r"[\"']?(.+?)[\"']?(?:\s+(?:field|input))?$",
        ActionKind.FOCUS, BlockedCategory.FILL,
        lambda m: Action(ActionKind.FOCUS, locator=label_locator(m.group(1))),
    ),
]


# ============================================================================
# Priority order
# ============================================================================

PATTERN_GROUPS: List[Tuple[str, List[StepPattern]]] = [
    ("structured", STRUCTURED_PATTERNS),
    ("auth", AUTH_PATTERNS),
    ("toast", TOAST_PATTERNS),
    ("modal", MODAL_ALERT_PATTERNS),
    ("extended-navigation", EXTENDED_NAVIGATION_PATTERNS),
    ("navigation", NAVIGATION_PATTERNS),
    ("select-from", SELECT_FROM_PATTERNS),
    ("keyboard", KEYBOARD_PATTERNS),
    ("extended-click", EXTENDED_CLICK_PATTERNS),
    ("click", CLICK_PATTERNS),
    ("select", SELECT_PATTERNS),
    ("extended-fill", EXTENDED_FILL_PATTERNS),
    ("fill", FILL_PATTERNS),
    ("check", CHECK_PATTERNS),
    ("extended-assertion", EXTENDED_ASSERTION_PATTERNS),
    ("visibility", VISIBILITY_PATTERNS),
    ("url", URL_PATTERNS),
    ("extended-wait", EXTENDED_WAIT_PATTERNS),
    ("wait", WAIT_PATTERNS),
    ("hover-focus", HOVER_FOCUS_PATTERNS),
]

ALL_PATTERNS: List[StepPattern] = [pattern for _, group in PATTERN_GROUPS for pattern in group]


def match_pattern(text: str,
                  patterns: Optional[List[StepPattern]] = None) -> Optional[Tuple[StepPattern, Action]]:
    """
    First pattern that matches ``text`` and the action it builds

    Args:
        text: Glossary-normalized step text
        patterns: Pattern list to use (defaults to ALL_PATTERNS)

    Returns:
        (pattern, action) or None when nothing matches
    """
    trimmed = text.strip()
    for pattern in patterns if patterns is not None else ALL_PATTERNS:
        action = pattern.match(trimmed)
        if action is not None:
            return pattern, action
    return None


def get_pattern_matches(text: str) -> List[Tuple[str, Action]]:
    """Every matching pattern in priority order (debugging aid)"""
    trimmed = text.strip()
    matches = []
    for pattern in ALL_PATTERNS:
        action = pattern.match(trimmed)
        if action is not None:
            matches.append((pattern.name, action))
    return matches


def find_matching_patterns(text: str) -> List[str]:
    return [name for name, _ in get_pattern_matches(text)]


def get_all_pattern_names() -> List[str]:
    return [pattern.name for pattern in ALL_PATTERNS]


def get_pattern(name: str) -> Optional[StepPattern]:
    for pattern in ALL_PATTERNS:
        if pattern.name == name:
            return pattern
    return None


def get_pattern_count_by_category() -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for pattern in ALL_PATTERNS:
        counts[pattern.category.value] = counts.get(pattern.category.value, 0) + 1
    return counts


__all__ = [
    "PATTERN_VERSION",
    "StepPattern",
    "PATTERN_GROUPS",
    "ALL_PATTERNS",
    "create_value_from_text",
    "parse_selector_to_locator",
    "role_locator",
    "label_locator",
    "text_locator",
    "match_pattern",
    "get_pattern_matches",
    "find_matching_patterns",
    "get_all_pattern_names",
    "get_pattern",
    "get_pattern_count_by_category",
    "key_name",
]
