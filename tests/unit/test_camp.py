"""Unit tests for the end-of-day camp."""

from __future__ import annotations

import pytest

from gembattle.domain.camp import Camp, rest_heal
from gembattle.domain.enums import PlayerClass, Screen
from gembattle.domain.errors import InvalidTransitionError
from gembattle.domain.models import PlayerState
from gembattle.events import Event, EventBus, ZennyTransferred
from gembattle.state import StateStore


def _player(health: int = 35, zenny: int = 12) -> PlayerState:
    return PlayerState(
        player_class=PlayerClass.ROGUE,
        health=health,
        max_health=35,
        stamina=3,
        base_stamina=3,
        zenny=zenny,
    )


def _camp(screen: Screen = Screen.CAMP) -> tuple[Camp, StateStore, list[Event]]:
    store = StateStore({"player": _player(), "metaZenny": 20, "currentScreen": screen})
    bus = EventBus()
    events: list[Event] = []
    bus.subscribe(Event, events.append)
    return Camp(store, bus), store, events


@pytest.mark.parametrize(("health", "healed"), [(10, 8), (30, 5), (35, 0)])
def test_rest_heals_a_quarter_of_max_health(health, healed):
    player = _player(health=health)

    assert rest_heal(player) == healed
    assert player.health == health + healed


def test_withdraw_banks_journey_zenny():
    camp, store, events = _camp()

    assert camp.withdraw(5)

    assert store.get("player").zenny == 7
    assert store.get("metaZenny") == 25
    assert events == [ZennyTransferred(amount=-5, journey_zenny=7, meta_zenny=25)]


def test_deposit_moves_meta_zenny_into_the_journey():
    camp, store, _ = _camp()

    assert camp.deposit(20)

    assert store.get("player").zenny == 32
    assert store.get("metaZenny") == 0


@pytest.mark.parametrize("amount", [0, -3, 13])
def test_withdraw_refuses_bad_amounts(amount):
    camp, store, events = _camp()

    assert not camp.withdraw(amount)
    assert store.get("player").zenny == 12
    assert store.get("metaZenny") == 20
    assert events == []


def test_deposit_refuses_more_than_the_meta_wallet():
    camp, store, _ = _camp()

    assert not camp.deposit(21)
    assert store.get("metaZenny") == 20


def test_camp_is_closed_outside_the_camp_screen():
    camp, store, _ = _camp(Screen.SHOP)

    with pytest.raises(InvalidTransitionError):
        camp.withdraw(5)
    with pytest.raises(InvalidTransitionError):
        camp.deposit(5)
    assert store.get("metaZenny") == 20
