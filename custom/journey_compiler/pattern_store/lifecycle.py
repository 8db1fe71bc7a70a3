"""
Record Lifecycle State Machine

Defines valid state transitions for lessons and components:
new → active → (reinforced|decaying) → stale → (active|archived)

- new → active on the first successful reapplication
- active/reinforced → decaying after one decay horizon without reinforcement
- decaying → stale after a second horizon
- stale → active on a later successful reapplication
- archived only through explicit curation
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from journey_compiler.pattern_store.models import RecordState, parse_timestamp


logger = logging.getLogger(__name__)


# Valid state transitions (what each state can transition TO)
VALID_TRANSITIONS: Dict[RecordState, Set[RecordState]] = {
    RecordState.NEW: {
        RecordState.ACTIVE,       # First successful reapplication
        RecordState.DECAYING,     # Never reapplied within a horizon
        RecordState.ARCHIVED,
    },
    RecordState.ACTIVE: {
        RecordState.REINFORCED,   # Further successful reapplication
        RecordState.DECAYING,
        RecordState.ARCHIVED,
    },
    RecordState.REINFORCED: {
        RecordState.DECAYING,
        RecordState.ARCHIVED,
    },
    RecordState.DECAYING: {
        RecordState.ACTIVE,       # Reinforced before going stale
        RecordState.STALE,
        RecordState.ARCHIVED,
    },
    RecordState.STALE: {
        RecordState.ACTIVE,       # Reactivated
        RecordState.ARCHIVED,
    },
    RecordState.ARCHIVED: {
        # Terminal state - no outgoing transitions
    },
}

TERMINAL_STATES: Set[RecordState] = {RecordState.ARCHIVED}

# States a compile may draw learned patterns from
USABLE_STATES: Set[RecordState] = {
    RecordState.NEW,
    RecordState.ACTIVE,
    RecordState.REINFORCED,
    RecordState.DECAYING,
}

INITIAL_STATE = RecordState.NEW


def is_valid_transition(from_state: str, to_state: str) -> bool:
    """
    Check if a state transition is valid.

    Examples:
        >>> is_valid_transition('active', 'decaying')
        True
        >>> is_valid_transition('archived', 'active')
        False
        >>> is_valid_transition('new', 'stale')
        False
    """
    try:
        from_enum = RecordState(from_state)
        to_enum = RecordState(to_state)
    except ValueError as e:
        logger.warning(f"Invalid state string: {e}")
        return False

    is_valid = to_enum in VALID_TRANSITIONS.get(from_enum, set())
    if not is_valid:
        logger.debug(f"Invalid transition: {from_state} → {to_state}")
    return is_valid


def get_valid_next_states(current_state: str) -> Set[str]:
    """
    Example:
        >>> sorted(get_valid_next_states('stale'))
        ['active', 'archived']
    """
    try:
        current_enum = RecordState(current_state)
    except ValueError:
        logger.warning(f"Invalid current state: {current_state}")
        return set()
    return {state.value for state in VALID_TRANSITIONS.get(current_enum, set())}


def state_after_application(state: RecordState, success: bool) -> RecordState:
    """
    State after a record is reapplied

    Failures never change state. Successes move new/decaying/stale records
    to active and active records to reinforced.
    """
    if not success or state in TERMINAL_STATES:
        return state
    if state == RecordState.ACTIVE:
        return RecordState.REINFORCED
    if state == RecordState.REINFORCED:
        return RecordState.REINFORCED
    return RecordState.ACTIVE


def state_for_age(state: RecordState,
                  last_reinforced: Optional[str],
                  now: datetime,
                  horizon_days: int) -> RecordState:
    """
    Time-based decay

    Idle time is measured from ``last_reinforced`` (last success, or first
    seen for records never reapplied). One horizon of idleness moves a
    record to decaying, two move it to stale.
    """
    if state in TERMINAL_STATES or state == RecordState.STALE:
        return state

    reference = parse_timestamp(last_reinforced)
    if reference is None:
        return state

    idle_days = (now - reference).total_seconds() / 86400
    if idle_days >= 2 * horizon_days:
        return RecordState.STALE
    if idle_days >= horizon_days:
        return RecordState.DECAYING
    return state


def transition_path(from_state: RecordState, to_state: RecordState) -> List[RecordState]:
    """
    States visited going from ``from_state`` to ``to_state`` through decay

    Example:
        >>> [s.value for s in transition_path(RecordState.ACTIVE, RecordState.STALE)]
        ['decaying', 'stale']
    """
    if from_state == to_state:
        return []
    if to_state == RecordState.STALE and from_state != RecordState.DECAYING:
        return [RecordState.DECAYING, RecordState.STALE]
    return [to_state]


def get_transition_description(from_state: str, to_state: str) -> Optional[str]:
    if not is_valid_transition(from_state, to_state):
        return None

    descriptions = {
        ('new', 'active'): 'First successful reapplication',
        ('new', 'decaying'): 'Never reapplied within the decay horizon',
        ('active', 'reinforced'): 'Reinforced by another successful reapplication',
        ('active', 'decaying'): 'No reinforcement within the decay horizon',
        ('reinforced', 'decaying'): 'No reinforcement within the decay horizon',
        ('decaying', 'active'): 'Reinforced while decaying',
        ('decaying', 'stale'): 'No reinforcement for two decay horizons',
        ('stale', 'active'): 'Reactivated by a successful reapplication',
    }
    return descriptions.get((from_state, to_state), 'Archived by curation')


__all__ = [
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "USABLE_STATES",
    "INITIAL_STATE",
    "is_valid_transition",
    "get_valid_next_states",
    "state_after_application",
    "state_for_age",
    "transition_path",
    "get_transition_description",
]
