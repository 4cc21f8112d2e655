"""Unit tests for the proficiency table."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from gembattle.domain.content import required_gem_keys
from gembattle.domain.enums import PlayerClass
from gembattle.domain.models import ProficiencyRecord
from gembattle.domain.proficiency import (
    ProficiencyTable,
    failure_chance_for,
    reconcile_proficiency,
)
from gembattle.domain.rules_config import DEFAULT_RULES

THRESHOLD = DEFAULT_RULES.proficiency.full_proficiency_threshold


def test_failure_chance_curve():
    assert failure_chance_for(0) == pytest.approx(0.9)
    assert failure_chance_for(1) == pytest.approx(0.75)
    assert failure_chance_for(5) == pytest.approx(0.15)
    assert failure_chance_for(THRESHOLD) == 0.0
    assert failure_chance_for(THRESHOLD + 50) == 0.0


@given(st.integers(min_value=0, max_value=200), st.integers(min_value=0, max_value=200))
def test_failure_chance_is_non_increasing(first, second):
    low, high = sorted((first, second))
    assert failure_chance_for(high) <= failure_chance_for(low)
    assert 0.0 <= failure_chance_for(low) <= 1.0


@given(st.integers(min_value=THRESHOLD, max_value=10_000))
def test_failure_chance_is_zero_from_threshold(count):
    assert failure_chance_for(count) == 0.0


def test_unknown_gem_counts_as_fully_learned():
    table = ProficiencyTable()
    assert table.current_failure_chance("mysteryGem") == 0.0
    assert table.is_proficient("mysteryGem")


def test_success_advances_and_failure_never_regresses():
    table = ProficiencyTable({"redBurst": ProficiencyRecord(0, 0.9)})

    record = table.record_outcome("redBurst", True)
    assert record.success_count == 1
    assert record.failure_chance == pytest.approx(0.75)

    record = table.record_outcome("redBurst", False)
    assert record.success_count == 1
    assert record.failure_chance == pytest.approx(0.75)


def test_record_reaches_zero_and_stays_there():
    table = ProficiencyTable({"redBurst": ProficiencyRecord(0, 0.9)})
    for _ in range(THRESHOLD + 3):
        table.record_outcome("redBurst", True)
    assert table.current_failure_chance("redBurst") == 0.0
    assert table.records["redBurst"].success_count == THRESHOLD + 3


def test_outcome_for_unknown_gem_synthesises_full_record():
    table = ProficiencyTable()
    record = table.record_outcome("greenPoison", False)
    assert record.failure_chance == 0.0
    assert "greenPoison" in table


def test_begin_learning_keeps_existing_record():
    table = ProficiencyTable({"redAttack": ProficiencyRecord(THRESHOLD, 0.0)})
    assert table.begin_learning("redAttack").failure_chance == 0.0
    assert table.begin_learning("redBurst").failure_chance == pytest.approx(0.9)


def test_reconcile_fills_required_gems_and_recomputes():
    loaded = {
        "redBurst": {"successCount": 2, "failureChance": 0.01},
        "greyHeal": {"success_count": 1},
        "broken": "not a record",
    }
    records = reconcile_proficiency(PlayerClass.KNIGHT, loaded)

    assert records["redBurst"].success_count == 2
    assert records["redBurst"].failure_chance == pytest.approx(0.6)
    assert records["greyHeal"].failure_chance == 0.0
    assert "broken" not in records
    for key in required_gem_keys(PlayerClass.KNIGHT):
        assert records[key].failure_chance == 0.0


@given(
    st.sampled_from(list(PlayerClass)),
    st.dictionaries(
        st.sampled_from(["redAttack", "greyHeal", "redBurst", "blueShield", "greenPoison"]),
        st.fixed_dictionaries({"successCount": st.integers(min_value=0, max_value=10)}),
    ),
)
def test_reconciled_sets_always_hold_required_gems(player_class, loaded):
    records = reconcile_proficiency(player_class, loaded)
    for key in required_gem_keys(player_class):
        assert key in records
        assert records[key].failure_chance == 0.0
