"""
Shared fixtures for the journey compiler tests
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add the package root to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "custom"))

from journey_compiler.config import PatternStoreConfig
from journey_compiler.journey_extractor.journey_parser import parse_journey_content
from journey_compiler.pattern_store.store import PatternStore
from journey_compiler.utils.errors import get_error_handler


FIXTURES_DIR = Path(__file__).parent / "fixtures"


SAMPLE_JOURNEY = """---
id: JRN-0001
title: Create an account
status: clarified
tier: smoke
actor: new-customer
scope: signup
tags: [accounts, onboarding]
completion:
  - type: url
    value: /dashboard
modules:
  foundation: []
  features: []
data:
  strategy: seed
  cleanup: delete-created-user
---

## Acceptance Criteria

### AC-1: Sign up form
- User navigates to /signup
- Enter {{email}} in the Email field
- Select 'USA' from the country dropdown
- Click the 'Save' button

### AC-2: Confirmation
- A success toast appears with Account created
- Verify the dashboard shows correct totals

## Procedural Steps

1. User navigates to /signup (AC-1)
2. User waits for the network to be idle
"""


class MutableClock:
    """Injectable "now" for lifecycle tests"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(autouse=True)
def reset_error_handler():
    handler = get_error_handler()
    handler.error_counts.clear()
    handler.recent_errors.clear()
    yield


@pytest.fixture
def sample_journey():
    return parse_journey_content(SAMPLE_JOURNEY, "journeys/JRN-0001.journey.md")


@pytest.fixture
def sample_journey_file(tmp_path):
    path = tmp_path / "JRN-0001.journey.md"
    path.write_text(SAMPLE_JOURNEY, encoding="utf-8")
    return path


@pytest.fixture
def clock():
    return MutableClock(datetime(2026, 3, 1, 9, 0, 0))


@pytest.fixture
def store(tmp_path, clock):
    return PatternStore(tmp_path / "store", config=PatternStoreConfig(root=str(tmp_path / "store")), clock=clock)
