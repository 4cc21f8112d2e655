"""Gem proficiency: per-class learning curve driving failure chances."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .content import required_gem_keys
from .enums import PlayerClass
from .models import ProficiencyRecord
from .rules_config import DEFAULT_RULES, ProficiencyRules, RulesConfig

logger = logging.getLogger(__name__)

FULL_PROFICIENCY = 0.0


def failure_chance_for(success_count: int, rules: ProficiencyRules = DEFAULT_RULES.proficiency) -> float:
    """Failure probability after ``success_count`` proficient uses.

    Non-increasing in ``success_count`` and exactly 0 at the threshold.
    """

    if success_count >= rules.full_proficiency_threshold:
        return FULL_PROFICIENCY
    chance = rules.base_failure_chance - rules.failure_step * max(0, success_count)
    return round(min(1.0, max(0.0, chance)), 6)


def full_record(rules: ProficiencyRules = DEFAULT_RULES.proficiency) -> ProficiencyRecord:
    return ProficiencyRecord(success_count=rules.full_proficiency_threshold, failure_chance=0.0)


def learning_record(rules: ProficiencyRules = DEFAULT_RULES.proficiency) -> ProficiencyRecord:
    return ProficiencyRecord(success_count=0, failure_chance=failure_chance_for(0, rules))


class ProficiencyTable:
    """Records for one class, keyed by gem key.

    The table mutates the mapping it wraps, so wrapping the dict stored at
    ``classGemProficiency.<class>`` updates the state tree in place.
    """

    def __init__(
        self,
        records: dict[str, ProficiencyRecord] | None = None,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self.records: dict[str, ProficiencyRecord] = records if records is not None else {}
        self._rules = rules.proficiency

    def current_failure_chance(self, gem_key: str) -> float:
        """Failure chance for ``gem_key``; unknown keys count as fully learned."""

        record = self.records.get(gem_key)
        if record is None:
            return FULL_PROFICIENCY
        return record.failure_chance

    def record_outcome(self, gem_key: str, succeeded: bool) -> ProficiencyRecord:
        """Credit a proficient use; failures never regress the record."""

        record = self.records.get(gem_key)
        if record is None:
            logger.warning("no proficiency record for %s; synthesising a full one", gem_key)
            record = full_record(self._rules)
            self.records[gem_key] = record
        if succeeded:
            record.success_count += 1
        record.failure_chance = failure_chance_for(record.success_count, self._rules)
        return record

    def begin_learning(self, gem_key: str) -> ProficiencyRecord:
        """Start a fresh learning record unless one already exists."""

        record = self.records.get(gem_key)
        if record is None:
            record = learning_record(self._rules)
            self.records[gem_key] = record
        return record

    def is_proficient(self, gem_key: str) -> bool:
        return self.current_failure_chance(gem_key) == FULL_PROFICIENCY

    def __contains__(self, gem_key: str) -> bool:
        return gem_key in self.records


def reconcile_proficiency(
    player_class: PlayerClass | str,
    loaded: Mapping[str, Any] | None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> dict[str, ProficiencyRecord]:
    """Return a complete, validated record set for ``player_class``.

    Entries may be :class:`ProficiencyRecord` objects or plain mappings using
    either ``success_count`` or ``successCount``.  Malformed entries are
    dropped; basic and signature gems are guaranteed at full proficiency;
    every chance is recomputed from its count.
    """

    result: dict[str, ProficiencyRecord] = {}
    for gem_key, raw in (loaded or {}).items():
        count = _success_count(raw)
        if count is None:
            logger.warning("discarding malformed proficiency entry %s=%r", gem_key, raw)
            continue
        result[str(gem_key)] = ProficiencyRecord(
            success_count=count, failure_chance=failure_chance_for(count, rules.proficiency)
        )

    for gem_key in required_gem_keys(player_class):
        record = result.get(gem_key)
        if record is None or record.failure_chance > 0:
            result[gem_key] = full_record(rules.proficiency)
    return result


def _success_count(raw: Any) -> int | None:
    if isinstance(raw, ProficiencyRecord):
        value: Any = raw.success_count
    elif isinstance(raw, Mapping):
        value = raw.get("success_count", raw.get("successCount"))
    else:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return max(0, int(value))
