"""Tests for the match_state module."""

import dataclasses
import unittest

import pytest

from markguard.match_state import (
    FALLBACK_TRANSPORT_ERROR,
    SKIP_DRY_RUN,
    SKIP_EMPTY,
    SKIP_FULLY_PROTECTED,
    SkipReason,
    UnitLifecycle,
)


class TestUnitLifecycle(unittest.TestCase):
    """Test suite for UnitLifecycle enum."""

    def test_enum_values_are_strings(self) -> None:
        """1. UnitLifecycle values are strings for logging and reports."""
        assert UnitLifecycle.PENDING == "pending"
        assert UnitLifecycle.FALLBACK == "fallback"
        assert UnitLifecycle.DRY_RUN_SIMULATED == "dry_run_simulated"

    def test_all_states_are_unique(self) -> None:
        """2. All UnitLifecycle states have unique string values."""
        values = [state.value for state in UnitLifecycle]
        assert len(values) == len(set(values))


class TestSkipReason(unittest.TestCase):
    """Test suite for SkipReason dataclass."""

    def test_skip_reason_is_immutable(self) -> None:
        """1. SkipReason is a frozen dataclass."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            SKIP_EMPTY.code = "modified"  # type: ignore[misc]

    def test_str_representation(self) -> None:
        """2. SkipReason prints its category, code and message."""
        assert str(SkipReason(category="mode", code="dry_run")) == "mode:dry_run"
        assert str(FALLBACK_TRANSPORT_ERROR) == "error:transport (Transform call failed; original text kept)"

    def test_predefined_reasons(self) -> None:
        """3. Predefined reasons cover every category."""
        assert {reason.category for reason in (SKIP_EMPTY, SKIP_FULLY_PROTECTED, FALLBACK_TRANSPORT_ERROR, SKIP_DRY_RUN)} == {"validation", "optimization", "error", "mode"}
