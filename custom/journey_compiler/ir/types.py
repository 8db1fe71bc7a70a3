"""
IR Types - Intermediate representation produced by the IR builder

An IRJourney is an ordered list of IRSteps (one per acceptance criterion or
unlinked procedural step). Each IRStep holds Actions and assertion Actions.
Every Action keeps the step text it came from.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# ============================================================================
# Enums
# ============================================================================

class ActionKind(str, Enum):
    """Every primitive the code generator knows how to render"""
    # Navigation
    NAVIGATE = "navigate"
    RELOAD = "reload"
    GO_BACK = "goBack"
    GO_FORWARD = "goForward"

    # Waits
    WAIT_FOR_URL = "waitForURL"
    WAIT_FOR_LOADING_COMPLETE = "waitForLoadingComplete"
    WAIT_FOR_NETWORK_IDLE = "waitForNetworkIdle"
    WAIT_FOR_TIMEOUT = "waitForTimeout"
    WAIT_FOR_VISIBLE = "waitForVisible"
    WAIT_FOR_HIDDEN = "waitForHidden"

    # Interactions
    CLICK = "click"
    DBLCLICK = "dblclick"
    RIGHT_CLICK = "rightClick"
    FILL = "fill"
    CLEAR = "clear"
    SELECT = "select"
    CHECK = "check"
    UNCHECK = "uncheck"
    PRESS = "press"
    HOVER = "hover"
    FOCUS = "focus"
    DISMISS_MODAL = "dismissModal"
    ACCEPT_ALERT = "acceptAlert"
    DISMISS_ALERT = "dismissAlert"

    # Assertions
    ASSERT_VISIBLE = "assertVisible"
    ASSERT_NOT_VISIBLE = "assertNotVisible"
    ASSERT_TEXT = "assertText"
    ASSERT_VALUE = "assertValue"
    ASSERT_URL = "assertURL"
    ASSERT_TITLE = "assertTitle"
    ASSERT_TOAST = "assertToast"
    ASSERT_ENABLED = "assertEnabled"
    ASSERT_DISABLED = "assertDisabled"
    ASSERT_CHECKED = "assertChecked"
    ASSERT_COUNT = "assertCount"

    # Modules
    CALL_MODULE = "callModule"

    BLOCKED = "blocked"

    @property
    def is_assertion(self) -> bool:
        return self.value.startswith("assert")


ASSERTION_KINDS = frozenset(kind for kind in ActionKind if kind.is_assertion)


class LocatorStrategy(str, Enum):
    ROLE = "role"
    LABEL = "label"
    PLACEHOLDER = "placeholder"
    TEXT = "text"
    TESTID = "testid"
    CSS = "css"


class ValueType(str, Enum):
    LITERAL = "literal"
    ACTOR = "actor"
    TEST_DATA = "testData"
    GENERATED = "generated"


class BlockedCategory(str, Enum):
    """Keyword taxonomy shared by the pattern set and the blocked categorizer"""
    CLICK = "click"
    FILL = "fill"
    SELECT = "select"
    NAVIGATION = "navigation"
    ASSERTION = "assertion"
    TOAST = "toast"
    WAIT = "wait"
    UNKNOWN = "unknown"


# ============================================================================
# Value objects
# ============================================================================

@dataclass(frozen=True)
class Locator:
    """
    How to find an element

    For ``role`` locators ``role`` holds the ARIA role and ``value`` the
    accessible name (which may be empty).
    """
    strategy: LocatorStrategy
    value: str
    role: Optional[str] = None
    exact: bool = False
    level: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"strategy": self.strategy.value, "value": self.value}
        if self.role:
            data["role"] = self.role
        if self.exact:
            data["exact"] = True
        if self.level is not None:
            data["level"] = self.level
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Locator':
        return cls(
            strategy=LocatorStrategy(data["strategy"]),
            value=data.get("value", ""),
            role=data.get("role"),
            exact=bool(data.get("exact", False)),
            level=data.get("level"),
        )


@dataclass(frozen=True)
class ValueSpec:
    """A value to type or compare, possibly resolved at run time"""
    value_type: ValueType
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.value_type.value, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ValueSpec':
        return cls(value_type=ValueType(data["type"]), value=str(data["value"]))


@dataclass(frozen=True)
class BlockedReason:
    """Structured diagnostic for a step no pattern could map"""
    summary: str
    category: BlockedCategory
    suggestion: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "summary": self.summary,
            "category": self.category.value,
            "suggestion": self.suggestion,
        }
        if self.detail:
            data["detail"] = self.detail
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BlockedReason':
        return cls(
            summary=data["summary"],
            category=BlockedCategory(data.get("category", "unknown")),
            suggestion=data.get("suggestion", ""),
            detail=data.get("detail"),
        )


# Older IR (and hand-written repairs) carry a bare string reason
LegacyBlockedReason = str


@dataclass(frozen=True)
class Action:
    """
    One IR primitive

    Only the fields relevant to ``kind`` are set. ``source_text`` is the step
    text the action was produced from, before normalization.
    """
    kind: ActionKind
    source_text: str = ""
    locator: Optional[Locator] = None
    value: Optional[ValueSpec] = None
    option: Optional[str] = None
    url: Optional[str] = None
    pattern: Optional[str] = None
    text: Optional[str] = None
    toast_type: Optional[str] = None
    message: Optional[str] = None
    key: Optional[str] = None
    count: Optional[int] = None
    timeout_ms: Optional[int] = None
    module: Optional[str] = None
    method: Optional[str] = None
    args: tuple = ()
    blocked: Optional[Union[BlockedReason, LegacyBlockedReason]] = None
    matched_by: Optional[str] = None

    @property
    def is_assertion(self) -> bool:
        return self.kind.is_assertion

    @property
    def is_blocked(self) -> bool:
        return self.kind == ActionKind.BLOCKED

    @property
    def target(self) -> Optional[str]:
        """The element label or name the action addresses"""
        return self.locator.value if self.locator else None

    @property
    def role(self) -> Optional[str]:
        return self.locator.role if self.locator else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value, "source_text": self.source_text}
        if self.locator is not None:
            data["locator"] = self.locator.to_dict()
        if self.value is not None:
            data["value"] = self.value.to_dict()
        for name in ("option", "url", "pattern", "text", "toast_type", "message",
                     "key", "count", "timeout_ms", "module", "method", "matched_by"):
            attr = getattr(self, name)
            if attr is not None:
                data[name] = attr
        if self.args:
            data["args"] = list(self.args)
        if self.blocked is not None:
            data["blocked"] = (
                self.blocked.to_dict() if isinstance(self.blocked, BlockedReason) else self.blocked
            )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Action':
        blocked = data.get("blocked")
        if isinstance(blocked, dict):
            blocked = BlockedReason.from_dict(blocked)
        return cls(
            kind=ActionKind(data["kind"]),
            source_text=data.get("source_text", ""),
            locator=Locator.from_dict(data["locator"]) if data.get("locator") else None,
            value=ValueSpec.from_dict(data["value"]) if data.get("value") else None,
            option=data.get("option"),
            url=data.get("url"),
            pattern=data.get("pattern"),
            text=data.get("text"),
            toast_type=data.get("toast_type"),
            message=data.get("message"),
            key=data.get("key"),
            count=data.get("count"),
            timeout_ms=data.get("timeout_ms"),
            module=data.get("module"),
            method=data.get("method"),
            args=tuple(data.get("args") or ()),
            blocked=blocked,
            matched_by=data.get("matched_by"),
        )


# ============================================================================
# Containers
# ============================================================================

@dataclass
class IRStep:
    """Actions for one acceptance criterion or procedural step"""
    step_id: str
    description: str
    actions: List[Action] = field(default_factory=list)
    assertions: List[Action] = field(default_factory=list)

    def add(self, action: Action) -> None:
        if action.is_assertion:
            self.assertions.append(action)
        else:
            self.actions.append(action)

    def all_actions(self) -> List[Action]:
        return self.actions + self.assertions

    @property
    def blocked(self) -> List[Action]:
        return [a for a in self.actions if a.is_blocked]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.step_id,
            "description": self.description,
            "actions": [a.to_dict() for a in self.actions],
            "assertions": [a.to_dict() for a in self.assertions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IRStep':
        return cls(
            step_id=data["id"],
            description=data.get("description", ""),
            actions=[Action.from_dict(a) for a in data.get("actions", [])],
            assertions=[Action.from_dict(a) for a in data.get("assertions", [])],
        )


@dataclass
class IRJourney:
    """Complete IR for one journey plus metadata the generator needs"""
    journey_id: str
    title: str
    tier: str
    actor: str
    scope: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    steps: List[IRStep] = field(default_factory=list)
    module_dependencies: Dict[str, List[str]] = field(default_factory=dict)
    data_strategy: Optional[str] = None
    cleanup_strategy: Optional[str] = None
    pattern_version: str = ""
    source_path: Optional[str] = None

    def iter_actions(self):
        for step in self.steps:
            for action in step.all_actions():
                yield step, action

    def blocked_actions(self) -> List[Action]:
        return [action for _, action in self.iter_actions() if action.is_blocked]

    @property
    def required_modules(self) -> List[str]:
        """Module names called by the IR, merged with declared dependencies"""
        names = set(self.module_dependencies.get("foundation", []))
        names.update(self.module_dependencies.get("features", []))
        names.update(a.module for _, a in self.iter_actions() if a.kind == ActionKind.CALL_MODULE and a.module)
        return sorted(names)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "journey_id": self.journey_id,
            "title": self.title,
            "tier": self.tier,
            "actor": self.actor,
            "scope": self.scope,
            "tags": list(self.tags),
            "module_dependencies": {k: list(v) for k, v in sorted(self.module_dependencies.items())},
            "data_strategy": self.data_strategy,
            "cleanup_strategy": self.cleanup_strategy,
            "pattern_version": self.pattern_version,
            "source_path": self.source_path,
            "steps": [s.to_dict() for s in self.steps],
        }

    def to_json(self) -> str:
        """Canonical serialization; identical IR gives identical text"""
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False, indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IRJourney':
        return cls(
            journey_id=data["journey_id"],
            title=data.get("title", ""),
            tier=data.get("tier", ""),
            actor=data.get("actor", ""),
            scope=data.get("scope"),
            tags=list(data.get("tags") or []),
            steps=[IRStep.from_dict(s) for s in data.get("steps", [])],
            module_dependencies={k: list(v) for k, v in (data.get("module_dependencies") or {}).items()},
            data_strategy=data.get("data_strategy"),
            cleanup_strategy=data.get("cleanup_strategy"),
            pattern_version=data.get("pattern_version", ""),
            source_path=data.get("source_path"),
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
