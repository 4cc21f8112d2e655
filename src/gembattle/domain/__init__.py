"""Battle domain for the gem battle engine.

The package exposes:

* Dataclasses describing gems, combatants and save data (see :mod:`models`).
* Enumerations used across the rules layer.
* Rule configuration objects (see :mod:`rules_config`) and static content.

The core components (proficiency table, gem catalog, selection manager,
resolution algorithm and turn state machine) live in their own modules and
are imported directly; they depend on :mod:`gembattle.events`, which in turn
depends on the enumerations here.
"""

from . import content, enums, errors, models, rules_config

__all__ = [
    "content",
    "enums",
    "errors",
    "models",
    "rules_config",
]
