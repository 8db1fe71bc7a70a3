"""
Journey Parser - Load journey documents for compilation

A journey document is Markdown with a YAML frontmatter header:

    ---
    id: JRN-0001
    title: Create an account
    status: clarified
    tier: smoke
    actor: new-user
    completion:
      - type: toast
        value: Account created
    ---

    ## Acceptance Criteria

    ### AC-1: User can register
    - Navigate to /signup
    - Enter 'jane@example.com' in the 'Email' field
    - Click the 'Create account' button
    - A success toast appears with Account created

    ## Procedural Steps
    1. Open the signup page (AC-1)

    ## Data Notes
    - Uses a fresh email per run
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from journey_compiler.utils.logger import get_logger
from journey_compiler.utils.errors import JourneyParseError, handle_errors


# ============================================================================
# Data Models
# ============================================================================

class JourneyStatus(str, Enum):
    """Journey authoring lifecycle"""
    PROPOSED = "proposed"
    DEFINED = "defined"
    CLARIFIED = "clarified"
    IMPLEMENTED = "implemented"
    QUARANTINED = "quarantined"
    DEPRECATED = "deprecated"


# Statuses that mean the journey text is final
FINALIZED_STATUSES = {JourneyStatus.CLARIFIED.value, JourneyStatus.IMPLEMENTED.value}


class JourneyTier(str, Enum):
    SMOKE = "smoke"
    RELEASE = "release"
    REGRESSION = "regression"


class CompletionType(str, Enum):
    URL = "url"
    TOAST = "toast"
    ELEMENT = "element"
    TITLE = "title"
    API = "api"


JOURNEY_ID_PATTERN = re.compile(r"^[A-Z]+-\d+$")


@dataclass
class CompletionSignal:
    """How the journey proves it finished"""
    signal_type: CompletionType
    value: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompletionSignal':
        return cls(signal_type=CompletionType(data["type"]), value=str(data["value"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.signal_type.value, "value": self.value}


@dataclass
class AcceptanceCriterion:
    """One ``### AC-n`` block with its bullet steps"""
    criterion_id: str
    title: str
    steps: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.criterion_id, "title": self.title, "steps": list(self.steps)}


@dataclass
class ProceduralStep:
    """A numbered step, optionally linked to a criterion via ``(AC-n)``"""
    number: int
    text: str
    linked_criterion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"number": self.number, "text": self.text, "linked_criterion": self.linked_criterion}


@dataclass
class Journey:
    """Parsed, immutable compiler input"""
    journey_id: str
    title: str
    status: JourneyStatus
    tier: JourneyTier
    actor: str
    scope: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    acceptance_criteria: List[AcceptanceCriterion] = field(default_factory=list)
    procedural_steps: List[ProceduralStep] = field(default_factory=list)
    data_notes: List[str] = field(default_factory=list)
    completion: List[CompletionSignal] = field(default_factory=list)
    modules: Dict[str, List[str]] = field(default_factory=dict)
    data_strategy: Optional[str] = None
    cleanup_strategy: Optional[str] = None
    source_path: Optional[str] = None

    @property
    def is_finalized(self) -> bool:
        return self.status.value in FINALIZED_STATUSES

    def step_count(self) -> int:
        return sum(len(ac.steps) for ac in self.acceptance_criteria) + len(self.procedural_steps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.journey_id,
            "title": self.title,
            "status": self.status.value,
            "tier": self.tier.value,
            "actor": self.actor,
            "scope": self.scope,
            "tags": list(self.tags),
            "acceptance_criteria": [ac.to_dict() for ac in self.acceptance_criteria],
            "procedural_steps": [ps.to_dict() for ps in self.procedural_steps],
            "data_notes": list(self.data_notes),
            "completion": [c.to_dict() for c in self.completion],
            "modules": {k: list(v) for k, v in self.modules.items()},
            "data_strategy": self.data_strategy,
            "cleanup_strategy": self.cleanup_strategy,
            "source_path": self.source_path,
        }

    def __str__(self) -> str:
        return (
            f"Journey({self.journey_id}: {self.title} [{self.status.value}] - "
            f"{len(self.acceptance_criteria)} criteria, {len(self.procedural_steps)} procedural steps)"
        )


# ============================================================================
# Parsing helpers
# ============================================================================

FRONTMATTER_REGEX = re.compile(r"\A---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
SECTION_HEADER_REGEX = re.compile(r"^##(?!#)(?![ \t]*AC-\d)[ \t]*(.+?)[ \t]*$", re.MULTILINE | re.IGNORECASE)
CRITERION_HEADER_REGEX = re.compile(r"^###?[ \t]*(AC-\d+)[: \t]*(.*?)[ \t]*$", re.IGNORECASE | re.MULTILINE)
BULLET_REGEX = re.compile(r"^[ \t]*[-*][ \t]+(.+?)[ \t]*$", re.MULTILINE)
NUMBERED_REGEX = re.compile(r"^[ \t]*\d+\.[ \t]+(.+?)[ \t]*$", re.MULTILINE)
CRITERION_REF_REGEX = re.compile(r"\s*\(AC-(\d+)\)\s*", re.IGNORECASE)


def _split_frontmatter(content: str) -> Tuple[str, str]:
    match = FRONTMATTER_REGEX.match(content.lstrip("\ufeff"))
    if not match:
        raise ValueError("No YAML frontmatter found (content should start with ---)")
    return match.group(1), content.lstrip("\ufeff")[match.end():].strip()


def _sections(body: str) -> Dict[str, str]:
    """Map lowercased H2 titles to their text"""
    headers = list(SECTION_HEADER_REGEX.finditer(body))
    sections: Dict[str, str] = {}
    for index, header in enumerate(headers):
        end = headers[index + 1].start() if index + 1 < len(headers) else len(body)
        title = re.sub(r"\s+", " ", header.group(1)).strip().lower()
        sections.setdefault(title, body[header.end():end])
    return sections


def _find_section(sections: Dict[str, str], *prefixes: str) -> Optional[str]:
    for title, text in sections.items():
        if any(title.startswith(prefix) for prefix in prefixes):
            return text
    return None


def parse_acceptance_criteria(body: str) -> List[AcceptanceCriterion]:
    section = _find_section(_sections(body), "acceptance criteria")
    if section is None:
        return []

    headers = list(CRITERION_HEADER_REGEX.finditer(section))
    criteria: List[AcceptanceCriterion] = []
    for index, header in enumerate(headers):
        end = headers[index + 1].start() if index + 1 < len(headers) else len(section)
        block = section[header.end():end]
        criteria.append(AcceptanceCriterion(
            criterion_id=header.group(1).upper(),
            title=header.group(2).strip(),
            steps=[m.group(1) for m in BULLET_REGEX.finditer(block)],
        ))
    return criteria


def parse_procedural_steps(body: str) -> List[ProceduralStep]:
    section = _find_section(_sections(body), "procedural step")
    if section is None:
        return []

    raw = [m.group(1) for m in NUMBERED_REGEX.finditer(section)]
    if not raw:
        raw = [m.group(1) for m in BULLET_REGEX.finditer(section)]

    steps: List[ProceduralStep] = []
    for number, text in enumerate(raw, start=1):
        ref = CRITERION_REF_REGEX.search(text)
        steps.append(ProceduralStep(
            number=number,
            text=CRITERION_REF_REGEX.sub(" ", text).strip(),
            linked_criterion=f"AC-{ref.group(1)}" if ref else None,
        ))
    return steps


def parse_data_notes(body: str) -> List[str]:
    section = _find_section(_sections(body), "data", "environment")
    if section is None:
        return []
    return [m.group(1) for m in BULLET_REGEX.finditer(section)]


def _validate_frontmatter(data: Any) -> List[str]:
    """Collect every frontmatter problem instead of failing on the first"""
    if not isinstance(data, dict):
        return ["frontmatter must be a mapping"]

    issues: List[str] = []
    required_fields = {
        "id": "Journey id",
        "title": "Title",
        "status": "Status",
        "tier": "Tier",
        "actor": "Actor",
    }
    for key, display_name in required_fields.items():
        if key not in data:
            issues.append(f"{key}: {display_name} is required")
        elif data[key] is None or str(data[key]).strip() == "":
            issues.append(f"{key}: {display_name} must not be empty")

    journey_id = data.get("id")
    if journey_id and not JOURNEY_ID_PATTERN.match(str(journey_id)):
        issues.append(f"id: '{journey_id}' must look like JRN-0001")

    enums = (("status", JourneyStatus), ("tier", JourneyTier))
    for key, enum_type in enums:
        value = data.get(key)
        if value and value not in {member.value for member in enum_type}:
            options = ", ".join(member.value for member in enum_type)
            issues.append(f"{key}: '{value}' is not one of {options}")

    completion = data.get("completion") or []
    if not isinstance(completion, list):
        issues.append("completion: must be a list")
    else:
        valid_types = {member.value for member in CompletionType}
        for index, signal in enumerate(completion):
            if not isinstance(signal, dict) or "type" not in signal or "value" not in signal:
                issues.append(f"completion.{index}: needs 'type' and 'value'")
            elif signal["type"] not in valid_types:
                issues.append(f"completion.{index}.type: '{signal['type']}' is not supported")

    tags = data.get("tags")
    if tags is not None and not isinstance(tags, list):
        issues.append("tags: must be a list")

    return issues


# ============================================================================
# Public API
# ============================================================================

def parse_journey_content(content: str, source_path: str = "virtual.journey.md") -> Journey:
    """
    Parse journey text into a Journey

    Args:
        content: Raw Markdown with YAML frontmatter
        source_path: Path used in error messages

    Raises:
        JourneyParseError: If the frontmatter is missing, unparsable or invalid
    """
    try:
        frontmatter_text, body = _split_frontmatter(content)
    except ValueError as e:
        raise JourneyParseError(f"Invalid frontmatter in {source_path}", source_path, [str(e)])

    try:
        data = yaml.safe_load(frontmatter_text)
    except yaml.YAMLError as e:
        raise JourneyParseError(f"Invalid YAML in journey frontmatter: {source_path}", source_path, [str(e)])

    issues = _validate_frontmatter(data)
    if issues:
        raise JourneyParseError(
            f"Invalid journey frontmatter in {source_path}:\n" + "\n".join(f"  - {i}" for i in issues),
            source_path,
            issues,
        )

    modules = data.get("modules") or {}
    data_config = data.get("data") or {}

    return Journey(
        journey_id=str(data["id"]),
        title=str(data["title"]).strip(),
        status=JourneyStatus(data["status"]),
        tier=JourneyTier(data["tier"]),
        actor=str(data["actor"]).strip(),
        scope=data.get("scope"),
        tags=[str(tag) for tag in data.get("tags") or []],
        acceptance_criteria=parse_acceptance_criteria(body),
        procedural_steps=parse_procedural_steps(body),
        data_notes=parse_data_notes(body),
        completion=[CompletionSignal.from_dict(c) for c in data.get("completion") or []],
        modules={
            "foundation": list(modules.get("foundation") or []),
            "features": list(modules.get("features") or []),
        },
        data_strategy=data_config.get("strategy"),
        cleanup_strategy=data_config.get("cleanup"),
        source_path=source_path,
    )


def validate_for_compile(journey: Journey,
                         accepted_statuses: Iterable[str] = tuple(FINALIZED_STATUSES)) -> List[str]:
    """
    Check a parsed journey is ready to compile

    Returns:
        List of problems (empty if ready)
    """
    problems: List[str] = []
    accepted = set(accepted_statuses)
    if journey.status.value not in accepted:
        problems.append(
            f"status is '{journey.status.value}', expected one of: {', '.join(sorted(accepted))}"
        )
    if not journey.acceptance_criteria and not journey.procedural_steps:
        problems.append("journey has no acceptance criteria or procedural steps")
    return problems


class JourneyExtractor:
    """
    Loads journey documents from disk

    Responsibilities:
    - Read and parse ``*.journey.md`` files
    - Reject journeys that are not finalized
    """

    FILE_GLOB = "*.journey.md"

    def __init__(self, accepted_statuses: Optional[Iterable[str]] = None):
        self.logger = get_logger("journey_extractor")
        self.accepted_statuses = set(accepted_statuses or FINALIZED_STATUSES)

    @handle_errors(component="journey_extractor", reraise=True)
    def load_journey(self, journey_path: Union[str, Path], require_finalized: bool = True) -> Journey:
        """
        Load and parse one journey file

        Raises:
            JourneyParseError: If the file is missing, malformed or not finalized
        """
        path = Path(journey_path)
        if not path.exists():
            raise JourneyParseError(f"Journey file not found: {path}", str(path))

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise JourneyParseError(f"Failed to read journey file: {path}", str(path), [str(e)])

        journey = parse_journey_content(content, str(path))

        if require_finalized:
            problems = validate_for_compile(journey, self.accepted_statuses)
            if problems:
                raise JourneyParseError(
                    f"Journey not ready for compilation: {journey.journey_id}",
                    str(path),
                    problems,
                )

        self.logger.debug(f"Parsed {journey}")
        return journey

    def discover(self, directory: Union[str, Path]) -> List[Path]:
        """List journey files under ``directory`` in a stable order"""
        return sorted(Path(directory).rglob(self.FILE_GLOB))


def load_journey(journey_path: Union[str, Path], require_finalized: bool = True) -> Journey:
    """
    Convenience function to load a journey file

    Args:
        journey_path: Path to the ``.journey.md`` file
        require_finalized: Reject journeys whose status is not clarified/implemented
    """
    return JourneyExtractor().load_journey(journey_path, require_finalized=require_finalized)


__all__ = [
    "JourneyStatus",
    "JourneyTier",
    "CompletionType",
    "CompletionSignal",
    "AcceptanceCriterion",
    "ProceduralStep",
    "Journey",
    "FINALIZED_STATUSES",
    "JourneyExtractor",
    "parse_journey_content",
    "parse_acceptance_criteria",
    "parse_procedural_steps",
    "parse_data_notes",
    "validate_for_compile",
    "load_journey",
]
