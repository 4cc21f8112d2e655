"""Gem bag construction and draw rules."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from gembattle.utils.rng import RandomSource

from .catalog import definition_of
from .content import BASIC_GEM_KEYS, CLASS_BAG_GEMS
from .enums import PlayerClass
from .models import Gem
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)

BASIC_COPIES = 2


class GemMinter:
    """Creates gem instances with run-unique, deterministic ids."""

    def __init__(self, serial: int = 0) -> None:
        self.serial = serial

    def mint(self, gem_key: str) -> Gem:
        self.serial += 1
        return Gem.from_definition(definition_of(gem_key), f"{gem_key}-{self.serial}")


def build_gem_bag(
    player_class: PlayerClass | str,
    random: RandomSource,
    minter: GemMinter,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Gem]:
    """Return a shuffled starting bag for ``player_class``.

    Two of every basic gem, the class composition on top, then random basic
    gems up to the configured bag size.
    """

    keys: list[str] = [key for key in BASIC_GEM_KEYS for _ in range(BASIC_COPIES)]
    for gem_key, copies in CLASS_BAG_GEMS[PlayerClass(player_class)]:
        keys.extend([gem_key] * copies)
    while len(keys) < rules.combat.gem_bag_size:
        keys.append(random.choice(BASIC_GEM_KEYS))

    bag = [minter.mint(key) for key in keys]
    random.shuffle(bag)
    return bag


def recycle_discard(bag: list[Gem], discard: list[Gem], random: RandomSource) -> None:
    """Move the discard pile into the bag and shuffle it."""

    if not discard:
        return
    bag.extend(discard)
    discard.clear()
    random.shuffle(bag)
    logger.debug("discard pile reshuffled into bag (%d gems)", len(bag))


def draw_gems(
    bag: list[Gem], discard: list[Gem], count: int, random: RandomSource
) -> list[Gem]:
    """Draw up to ``count`` gems from the end of the bag.

    The discard pile is recycled first when the bag cannot cover the draw.
    Fewer gems are returned when both piles run dry.
    """

    if count <= 0:
        return []
    if len(bag) < count:
        recycle_discard(bag, discard, random)
    drawn: list[Gem] = []
    while bag and len(drawn) < count:
        drawn.append(bag.pop())
    return drawn


def refill_hand(
    hand: list[Gem],
    bag: list[Gem],
    discard: list[Gem],
    random: RandomSource,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Gem]:
    """Top ``hand`` up to the hand size in place and return the drawn gems."""

    drawn = draw_gems(bag, discard, rules.combat.hand_size - len(hand), random)
    hand.extend(drawn)
    return drawn


def return_to_bag(gems: Iterable[Gem], bag: list[Gem], random: RandomSource) -> int:
    """Put ``gems`` back into the bag and reshuffle; returns how many moved."""

    gems = list(gems)
    bag.extend(gems)
    random.shuffle(bag)
    return len(gems)
