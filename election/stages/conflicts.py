"""Conflict Resolver: make sure nobody wins more than one position."""

import logging
from collections.abc import Mapping
from dataclasses import replace

from election.models import ChoiceType, PositionResult
from election.stages import register_stage
from election.stages.base import PipelineState, Stage, select_with_ties

logger = logging.getLogger(__name__)


def _reconcile_position(
    result: PositionResult, finalized: Mapping[str, str]
) -> tuple[PositionResult, dict[str, str], list[str]]:
    """Demote second-choice winners finalized elsewhere and refill their seats.

    Args:
        result: Position to reconcile
        finalized: user id -> position id of every finalized win so far

    Returns:
        (reconciled position, updated finalized mapping, demoted user ids)
    """
    position_id = result.position_id
    demoted = [
        c.user_id for c in result.candidates
        if c.is_winner
        and c.choice_type is ChoiceType.SECOND
        and finalized.get(c.user_id, position_id) != position_id
    ]
    kept = [c.user_id for c in result.candidates if c.is_winner and c.user_id not in demoted]
    finalized = {**finalized, **{uid: position_id for uid in kept}}

    open_seats = result.seat_count - len(kept)
    refill: list[str] = []
    if open_seats > 0:
        available = [
            c for c in result.candidates
            if not c.is_winner and c.vote_count > 0 and c.user_id not in finalized
        ]
        refill = [c.user_id for c in select_with_ties(available, open_seats)]
        finalized.update({uid: position_id for uid in refill})

    if demoted:
        logger.info(
            "Position %s: demoted %s (won first choice elsewhere), refilled with %s",
            position_id, demoted, refill,
        )
    elif refill:
        logger.info("Position %s: filled open seats with %s", position_id, refill)

    seated = set(kept) | set(refill)
    candidates = [replace(c, is_winner=c.user_id in seated) for c in result.candidates]
    return result.with_candidates(candidates), finalized, demoted


def resolve_conflicts(positions: Mapping[str, PositionResult]) -> dict[str, PositionResult]:
    """Remove double wins, preferring first-choice wins over second-choice ones.

    All first-choice winners are finalized up front. Positions are then
    walked in order: a second-choice winner already finalized in another
    position is demoted and the seat is refilled from the remaining
    candidates. Walks repeat until one makes no demotion.
    """
    resolved = dict(positions)
    finalized: dict[str, str] = {}
    for position_id, result in resolved.items():
        if result.is_void:
            continue
        for c in result.winners:
            if c.choice_type is ChoiceType.FIRST:
                finalized[c.user_id] = position_id

    # Every demotion removes someone from the pending pool for good.
    for _ in range(len(resolved) + 1):
        any_demoted = False
        for position_id, result in resolved.items():
            if result.is_void:
                continue
            resolved[position_id], finalized, demoted = _reconcile_position(result, finalized)
            any_demoted = any_demoted or bool(demoted)
        if not any_demoted:
            break

    return resolved


@register_stage
class ConflictStage(Stage):
    order = 30

    @property
    def name(self) -> str:
        return "conflicts"

    def run(self, state: PipelineState) -> PipelineState:
        return replace(state, positions=resolve_conflicts(state.positions))
