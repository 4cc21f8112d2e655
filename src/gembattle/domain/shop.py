"""Between-battle shop: gem purchases, upgrades, removal and healing.

Every purchase is paid from the journey wallet (``player.zenny``) and is only
accepted while the run sits on the shop screen.  A refused purchase returns a
falsy value and leaves wallet, hand and bag untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from gembattle.events import Bus, HandUpdated, ShopPurchase
from gembattle.state import StateStore
from gembattle.utils.rng import RandomSource

from . import resolution
from .catalog import GemCatalog, definition_of
from .content import BASIC_GEM_KEYS, CLASS_UPGRADES, class_definition
from .enums import GemColor, PlayerClass, Screen
from .errors import InvalidTransitionError
from .hand import GemMinter
from .models import Gem, GemDefinition, PlayerState
from .rules_config import DEFAULT_RULES, RulesConfig
from .selection import SelectionManager

logger = logging.getLogger(__name__)


def pick_shop_gem(
    player_class: PlayerClass | str,
    unlocked: Sequence[GemDefinition],
    random: RandomSource,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> GemDefinition | None:
    """Pick an unlocked gem of the class colour or grey.

    One draw decides the colour; when that colour has no unlocked gems the
    other one is used instead.
    """

    own = class_definition(player_class).color
    pools = {
        own: [definition for definition in unlocked if definition.color is own],
        GemColor.GREY: [definition for definition in unlocked if definition.color is GemColor.GREY],
    }
    first = own if random.random() < rules.shop.class_color_chance else GemColor.GREY
    second = GemColor.GREY if first is own else own
    pool = pools[first] or pools[second]
    if not pool:
        return None
    return random.choice(pool)


def upgrade_targets(
    gem: Gem, player_class: PlayerClass | str, unlocked: Sequence[str]
) -> list[str]:
    """Gem keys that ``gem`` may be replaced with.

    The class-colour basic gem upgrades to the class signature gem; any gem
    may also become an unlocked, non-basic gem of its own colour.
    """

    options: list[str] = []
    basic, signature = CLASS_UPGRADES[PlayerClass(player_class)]
    if gem.key == basic:
        options.append(signature)
    for key in unlocked:
        if key in BASIC_GEM_KEYS or key == gem.key or key in options:
            continue
        if definition_of(key).color is gem.color:
            options.append(key)
    return options


class Shop:
    """Shop operations against the state store."""

    def __init__(
        self,
        store: StateStore,
        bus: Bus,
        *,
        random: RandomSource,
        selection: SelectionManager,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._store = store
        self._bus = bus
        self._random = random
        self._selection = selection
        self._rules = rules

    @property
    def player(self) -> PlayerState:
        player = self._store.get("player")
        if player is None:
            raise InvalidTransitionError("no player in the current run")
        return player

    @property
    def catalog(self) -> GemCatalog:
        return GemCatalog(self._store, self.player.player_class, rules=self._rules)

    @property
    def gem_count(self) -> int:
        """Gems owned this journey: hand, bag and discard pile together."""

        return sum(len(self._store.get(path) or []) for path in ("hand", "gemBag", "discard"))

    def _require_open(self) -> PlayerState:
        screen = self._store.get("currentScreen")
        if screen != Screen.SHOP:
            raise InvalidTransitionError(f"the shop is closed on the {screen} screen")
        return self.player

    def _pay(self, player: PlayerState, cost: int, action: str, gem_key: str = "") -> bool:
        if player.zenny < cost:
            logger.info("%s refused: %d zenny, cost %d", action, player.zenny, cost)
            return False
        player.zenny -= cost
        self._bus.publish(ShopPurchase(action=action, cost=cost, gem_key=gem_key))
        return True

    def _mint(self, gem_key: str) -> Gem:
        minter = GemMinter(self._store.get("gemSerial", 0))
        gem = minter.mint(gem_key)
        self._store.set("gemSerial", minter.serial)
        return gem

    def selected_gem(self) -> tuple[int, Gem] | None:
        """The single hand gem picked with shop selection, if any."""

        hand = self._store.get("hand") or []
        selected = set(self._selection.selected)
        if not resolution.validate_selection(selected, hand):
            logger.warning(
                "stale shop selection %s for hand of %d; clearing", sorted(selected), len(hand)
            )
            self._selection.clear()
            return None
        if len(selected) != 1:
            return None
        index = next(iter(selected))
        return index, hand[index]

    # -- purchases -------------------------------------------------------------------

    def buy_gem(self) -> Gem | None:
        """Add a random unlocked gem to the bag."""

        player = self._require_open()
        if self.gem_count >= self._rules.combat.gem_bag_size:
            logger.info("gem bag is full (%d gems)", self.gem_count)
            return None
        if player.zenny < self._rules.shop.buy_gem_cost:
            logger.info("buy refused: %d zenny", player.zenny)
            return None
        definition = pick_shop_gem(
            player.player_class, self.catalog.unlocked_definitions(), self._random, rules=self._rules
        )
        if definition is None:
            logger.warning("no unlocked gems for sale to %s", player.player_class)
            return None
        self._pay(player, self._rules.shop.buy_gem_cost, "buy", definition.key)
        gem = self._mint(definition.key)
        bag = self._store.get("gemBag")
        if bag is None:
            bag = []
            self._store.set("gemBag", bag)
        bag.append(gem)
        self._random.shuffle(bag)
        return gem

    def heal(self) -> int:
        """Restore health for zenny; returns the amount healed."""

        player = self._require_open()
        missing = player.max_health - player.health
        if missing <= 0:
            logger.info("heal refused: already at full health")
            return 0
        if not self._pay(player, self._rules.shop.heal_cost, "heal"):
            return 0
        healed = min(missing, self._rules.shop.heal_amount)
        player.health += healed
        return healed

    def discard_selected(self) -> Gem | None:
        """Remove the selected hand gem from the journey for good."""

        player = self._require_open()
        picked = self.selected_gem()
        if picked is None:
            return None
        index, gem = picked
        if not self._pay(player, self._rules.shop.discard_gem_cost, "discard", gem.key):
            return None
        hand = self._store.get("hand")
        del hand[index]
        self._selection.clear()
        self._bus.publish(HandUpdated(size=len(hand)))
        return gem

    def upgrade_options(self) -> list[str]:
        picked = self.selected_gem()
        if picked is None:
            return []
        return upgrade_targets(picked[1], self.player.player_class, self.catalog.state.unlocked)

    def upgrade_selected(self, gem_key: str) -> Gem | None:
        """Replace the selected hand gem with ``gem_key``."""

        player = self._require_open()
        picked = self.selected_gem()
        if picked is None:
            return None
        index, gem = picked
        if gem_key not in upgrade_targets(gem, player.player_class, self.catalog.state.unlocked):
            logger.info("%s cannot be upgraded to %s", gem.key, gem_key)
            return None
        if not self._pay(player, self._rules.shop.upgrade_gem_cost, "upgrade", gem_key):
            return None
        upgraded = self._mint(gem_key)
        hand = self._store.get("hand")
        hand[index] = upgraded
        self._selection.clear()
        self._bus.publish(HandUpdated(size=len(hand)))
        return upgraded
