"""Runtime primitives backing the gem battle HTTP API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import uuid4

from gembattle.config import Settings, get_settings
from gembattle.domain.enums import PlayerClass
from gembattle.domain.rules_config import DEFAULT_RULES, RulesConfig
from gembattle.factory import create_game_service
from gembattle.services import GameService

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[str], GameService]


class RunRegistry:
    """Active runs keyed by an opaque identifier."""

    def __init__(self, factory: ServiceFactory) -> None:
        self._factory = factory
        self._runs: dict[str, GameService] = {}

    def create(self, player_class: PlayerClass) -> tuple[str, GameService]:
        run_id = uuid4().hex
        service = self._factory(run_id)
        service.start_run(player_class)
        self._runs[run_id] = service
        logger.info("run %s created for %s", run_id, player_class.value)
        return run_id, service

    def get(self, run_id: str) -> GameService:
        """Return a run or raise ``KeyError``."""

        return self._runs[run_id]

    def __len__(self) -> int:
        return len(self._runs)

    def save_all(self) -> int:
        """Persist every open run; returns how many were written."""

        return sum(1 for service in self._runs.values() if service.save())


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        rules: RulesConfig = DEFAULT_RULES,
        service_factory: ServiceFactory | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.rules = rules
        self.runs = RunRegistry(
            service_factory
            or (
                lambda run_id: create_game_service(self.settings, namespace=run_id, rules=rules)
            )
        )

    async def save_runs(self) -> int:
        saved = self.runs.save_all()
        logger.info("saved %d of %d open runs", saved, len(self.runs))
        return saved


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
