"""HTTP routes for the gem battle API."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from gembattle.api.runtime import ApiState
from gembattle.domain.content import BASE_GEMS
from gembattle.domain.enums import PlayerClass, SelectionContext
from gembattle.domain.errors import InvalidTransitionError
from gembattle.domain.models import Gem
from gembattle.domain.resolution import EffectBatch
from gembattle.domain.turns import BattleResult
from gembattle.services import GameService

router = APIRouter()

T = TypeVar("T")


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class RunSummary(BaseModel):
    id: str
    player: dict[str, object]
    state: str
    day: int
    phase: str
    battle_count: int
    meta_zenny: int
    screen: str
    hand: list[dict[str, object]]
    selected: list[int]
    bag_size: int
    discard_size: int
    gem_count: int
    enemy: dict[str, object] | None
    turn: int
    catalog: dict[str, list[str]]


class CreateRunRequest(BaseModel):
    player_class: PlayerClass


class SelectionRequest(BaseModel):
    index: int
    context: SelectionContext = SelectionContext.BATTLE


class EffectSummary(BaseModel):
    index: int
    gem_key: str
    kind: str
    succeeded: bool
    skipped: bool
    amount: int
    backfire: int
    stamina_spent: int


class ExecuteResponse(BaseModel):
    rejected: bool
    effects: list[EffectSummary]
    enemy_health_delta: int
    player_health_delta: int
    stamina_delta: int
    run: RunSummary


class OutcomeResponse(BaseModel):
    result: str
    enemy: str
    reward: int
    next_screen: str
    journey_complete: bool
    run: RunSummary


class UnlockRequest(BaseModel):
    gem_key: str = Field(min_length=1)


class UnlockResponse(BaseModel):
    unlocked: bool
    run: RunSummary


class ShopResponse(BaseModel):
    success: bool
    gem_key: str | None = None
    amount: int = 0
    run: RunSummary


class UpgradeRequest(BaseModel):
    gem_key: str = Field(min_length=1)


class UpgradeOptionsResponse(BaseModel):
    options: list[str]
    run: RunSummary


class TransferRequest(BaseModel):
    amount: int


def _service(state: ApiState, run_id: str) -> GameService:
    try:
        return state.runs.get(run_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="run not found") from exc


def _guarded(action: Callable[[], T]) -> T:
    try:
        return action()
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


def _summary(run_id: str, service: GameService) -> RunSummary:
    return RunSummary.model_validate({"id": run_id, **service.summary()})


def _gem_response(run_id: str, service: GameService, gem: Gem | None) -> ShopResponse:
    return ShopResponse(
        success=gem is not None,
        gem_key=gem.key if gem is not None else None,
        run=_summary(run_id, service),
    )


def _execute_response(run_id: str, service: GameService, batch: EffectBatch) -> ExecuteResponse:
    return ExecuteResponse(
        rejected=batch.rejected,
        effects=[
            EffectSummary(
                index=effect.index,
                gem_key=effect.gem_key,
                kind=effect.kind.value,
                succeeded=effect.succeeded,
                skipped=effect.skipped,
                amount=effect.amount,
                backfire=effect.backfire,
                stamina_spent=effect.stamina_spent,
            )
            for effect in batch.effects
        ],
        enemy_health_delta=batch.enemy_health_delta,
        player_health_delta=batch.player_health_delta,
        stamina_delta=batch.stamina_delta,
        run=_summary(run_id, service),
    )


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "rules_version": state.settings.rules_version,
        "storage_backend": state.settings.storage_backend,
        "active_runs": len(state.runs),
    }


@router.post("/runs", response_model=RunSummary, status_code=status.HTTP_201_CREATED)
async def create_run(request: CreateRunRequest, state: ApiStateDep) -> RunSummary:
    run_id, service = state.runs.create(request.player_class)
    return _summary(run_id, service)


@router.get("/runs/{run_id}", response_model=RunSummary)
async def get_run(run_id: str, state: ApiStateDep) -> RunSummary:
    return _summary(run_id, _service(state, run_id))


@router.post("/runs/{run_id}/battle", response_model=RunSummary)
async def start_battle(run_id: str, state: ApiStateDep) -> RunSummary:
    service = _service(state, run_id)
    _guarded(service.start_battle)
    return _summary(run_id, service)


@router.post("/runs/{run_id}/selection", response_model=RunSummary)
async def toggle_selection(run_id: str, request: SelectionRequest, state: ApiStateDep) -> RunSummary:
    service = _service(state, run_id)
    service.toggle_selection(request.index, request.context)
    return _summary(run_id, service)


@router.post("/runs/{run_id}/execute", response_model=ExecuteResponse)
async def execute_selection(run_id: str, state: ApiStateDep) -> ExecuteResponse:
    service = _service(state, run_id)
    batch = _guarded(service.execute_selection)
    return _execute_response(run_id, service, batch)


@router.post("/runs/{run_id}/wait", response_model=RunSummary)
async def wait_turn(run_id: str, state: ApiStateDep) -> RunSummary:
    service = _service(state, run_id)
    _guarded(service.wait_turn)
    return _summary(run_id, service)


@router.post("/runs/{run_id}/discard", response_model=RunSummary)
async def discard_and_end_turn(run_id: str, state: ApiStateDep) -> RunSummary:
    service = _service(state, run_id)
    _guarded(service.discard_and_end_turn)
    return _summary(run_id, service)


@router.post("/runs/{run_id}/flee", response_model=OutcomeResponse)
async def flee(run_id: str, state: ApiStateDep) -> OutcomeResponse:
    service = _service(state, run_id)
    result: BattleResult = _guarded(service.flee)
    return OutcomeResponse(
        result=result.result.value,
        enemy=result.enemy,
        reward=result.reward,
        next_screen=result.next_screen.value,
        journey_complete=result.journey_complete,
        run=_summary(run_id, service),
    )


@router.post("/runs/{run_id}/catalog/unlock", response_model=UnlockResponse)
async def unlock_gem(run_id: str, request: UnlockRequest, state: ApiStateDep) -> UnlockResponse:
    service = _service(state, run_id)
    if request.gem_key not in BASE_GEMS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="gem not found")
    unlocked = _guarded(lambda: service.unlock_gem(request.gem_key))
    return UnlockResponse(unlocked=unlocked, run=_summary(run_id, service))


@router.post("/runs/{run_id}/shop/buy", response_model=ShopResponse)
async def buy_gem(run_id: str, state: ApiStateDep) -> ShopResponse:
    service = _service(state, run_id)
    gem = _guarded(service.buy_gem)
    return _gem_response(run_id, service, gem)


@router.post("/runs/{run_id}/shop/heal", response_model=ShopResponse)
async def heal(run_id: str, state: ApiStateDep) -> ShopResponse:
    service = _service(state, run_id)
    healed = _guarded(service.heal)
    return ShopResponse(success=healed > 0, amount=healed, run=_summary(run_id, service))


@router.post("/runs/{run_id}/shop/discard", response_model=ShopResponse)
async def discard_gem(run_id: str, state: ApiStateDep) -> ShopResponse:
    service = _service(state, run_id)
    gem = _guarded(service.discard_gem)
    return _gem_response(run_id, service, gem)


@router.get("/runs/{run_id}/shop/upgrades", response_model=UpgradeOptionsResponse)
async def upgrade_options(run_id: str, state: ApiStateDep) -> UpgradeOptionsResponse:
    service = _service(state, run_id)
    options = _guarded(service.upgrade_options)
    return UpgradeOptionsResponse(options=options, run=_summary(run_id, service))


@router.post("/runs/{run_id}/shop/upgrade", response_model=ShopResponse)
async def upgrade_gem(run_id: str, request: UpgradeRequest, state: ApiStateDep) -> ShopResponse:
    service = _service(state, run_id)
    if request.gem_key not in BASE_GEMS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="gem not found")
    gem = _guarded(lambda: service.upgrade_gem(request.gem_key))
    return _gem_response(run_id, service, gem)


@router.post("/runs/{run_id}/camp/withdraw", response_model=ShopResponse)
async def withdraw_zenny(run_id: str, request: TransferRequest, state: ApiStateDep) -> ShopResponse:
    service = _service(state, run_id)
    moved = _guarded(lambda: service.withdraw_zenny(request.amount))
    return ShopResponse(
        success=moved, amount=request.amount if moved else 0, run=_summary(run_id, service)
    )


@router.post("/runs/{run_id}/camp/deposit", response_model=ShopResponse)
async def deposit_zenny(run_id: str, request: TransferRequest, state: ApiStateDep) -> ShopResponse:
    service = _service(state, run_id)
    moved = _guarded(lambda: service.deposit_zenny(request.amount))
    return ShopResponse(
        success=moved, amount=request.amount if moved else 0, run=_summary(run_id, service)
    )
