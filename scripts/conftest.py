"""Shared fixtures for the analyzer test suites."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from market_fixtures import distribution_payload


@pytest.fixture
def scenario_payload() -> Dict[str, Any]:
    return distribution_payload(1)


@pytest.fixture
def mirrored_payload() -> Dict[str, Any]:
    return distribution_payload(-1)
