"""Service Factory for the gem battle engine.

Builds slot stores and game services from :class:`~gembattle.config.Settings`.
For testing, construct :class:`~gembattle.services.GameService` directly with
a :class:`~gembattle.repository.MemorySlotStore` and a scripted random source.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.orm import Session, sessionmaker

from gembattle.config import Settings
from gembattle.database import create_db_engine, create_session_factory, init_db
from gembattle.domain.rules_config import DEFAULT_RULES, RulesConfig
from gembattle.events import EventBus, InstrumentedBus
from gembattle.repository import JsonFileSlotStore, MemorySlotStore, SlotStore, SqlSlotStore
from gembattle.savegame import Persistence
from gembattle.services import GameService
from gembattle.state import StateStore
from gembattle.utils.rng import SeededRandom


@lru_cache
def _session_factory(url: str, echo: bool) -> sessionmaker[Session]:
    engine = create_db_engine(url, echo=echo)
    init_db(engine)
    return create_session_factory(engine)


def create_slot_store(settings: Settings, *, namespace: str = "") -> SlotStore:
    """Create the configured slot backend.

    Args:
        settings: Application settings
        namespace: Keeps one run's slots apart from another's

    Returns:
        A JSON-file, SQL or in-memory slot store
    """
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.storage_backend == "sql":
        factory = _session_factory(settings.database_url, settings.database_echo)
        return SqlSlotStore(factory, namespace=namespace)
    if settings.storage_backend == "memory":
        return MemorySlotStore()
    base = settings.data_dir / namespace if namespace else settings.data_dir
    return JsonFileSlotStore(base)


def create_game_service(
    settings: Settings,
    *,
    namespace: str = "",
    rules: RulesConfig = DEFAULT_RULES,
) -> GameService:
    """Create a GameService with persistence and an instrumented bus."""

    store = StateStore()
    bus = InstrumentedBus(EventBus())
    persistence = Persistence(
        store,
        create_slot_store(settings, namespace=namespace),
        bus=bus,
        rules=rules,
        max_age_days=settings.save_max_age_days,
    )
    return GameService(
        store=store,
        bus=bus,
        persistence=persistence,
        random=SeededRandom(settings.rng_seed),
        rules=rules,
    )
