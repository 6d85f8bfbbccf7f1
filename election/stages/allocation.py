"""Preference Allocator: seat first-choice candidates, then fill with second choices."""

import logging
from collections.abc import Mapping
from dataclasses import replace

from election.models import ChoiceType, PositionResult
from election.stages import register_stage
from election.stages.base import PipelineState, Stage, select_with_ties

logger = logging.getLogger(__name__)


def allocate_position(
    result: PositionResult, winners: frozenset[str]
) -> tuple[PositionResult, frozenset[str]]:
    """Select one position's winners in two passes.

    Pass 1 seats first-choice candidates with votes. Pass 2 fills any seats
    left over with second-choice candidates who are not already winners
    elsewhere. Both passes include everyone tied at the cutoff, so a position
    may temporarily hold more winners than seats; the tie detector reports
    those.

    Args:
        result: Tallied position
        winners: User ids already seated in earlier positions

    Returns:
        (position with winners marked, winners accumulated so far)
    """
    if result.is_void:
        return result, winners

    first_choice = [
        c for c in result.candidates if c.choice_type is ChoiceType.FIRST and c.vote_count > 0
    ]
    selected = [c.user_id for c in select_with_ties(first_choice, result.seat_count)]

    open_seats = result.seat_count - len(selected)
    if open_seats > 0:
        second_choice = [
            c for c in result.candidates
            if c.choice_type is ChoiceType.SECOND
            and c.vote_count > 0
            and c.user_id not in winners
            and c.user_id not in selected
        ]
        fill = [c.user_id for c in select_with_ties(second_choice, open_seats)]
        if fill:
            logger.debug("Position %s: second-choice fill %s", result.position_id, fill)
        selected.extend(fill)

    candidates = [replace(c, is_winner=c.user_id in selected) for c in result.candidates]
    logger.info("Position %s: preliminary winners %s", result.position_id, selected)
    return result.with_candidates(candidates), winners | frozenset(selected)


def allocate(positions: Mapping[str, PositionResult]) -> dict[str, PositionResult]:
    """Allocate seats across all positions in their configured order.

    The set of winners is threaded from one position to the next, so who is
    excluded from a second-choice fill depends on that order.
    """
    winners: frozenset[str] = frozenset()
    allocated: dict[str, PositionResult] = {}
    for position_id, result in positions.items():
        allocated[position_id], winners = allocate_position(result, winners)
    return allocated


@register_stage
class AllocationStage(Stage):
    order = 20

    @property
    def name(self) -> str:
        return "allocation"

    def run(self, state: PipelineState) -> PipelineState:
        return replace(state, positions=allocate(state.positions))
