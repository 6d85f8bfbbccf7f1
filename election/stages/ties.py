"""Tie Detector: find equal vote counts contesting a position's last seat(s)."""

import logging
from collections.abc import Mapping
from dataclasses import replace

from election.models import CandidateResult, PositionResult, TieAnalysis, TieGroup
from election.stages import register_stage
from election.stages.base import PipelineState, Stage, winning_positions, wins_elsewhere

logger = logging.getLogger(__name__)


def contenders(result: PositionResult, seated: Mapping[str, set[str]]) -> list[CandidateResult]:
    """Candidates still competing for this position, in display order.

    Candidates without votes and candidates seated in another position are
    out of the running. Candidates seated here stay in, with ``is_winner``
    set.
    """
    return [
        c for c in result.candidates
        if c.vote_count > 0 and not wins_elsewhere(c.user_id, result.position_id, seated)
    ]


def seating_order(candidates) -> list[CandidateResult]:
    """Order seated candidates the way allocation seated them.

    First-choice candidates fill seats before any second-choice candidate,
    whatever their vote counts; within each group, more votes come first.
    """
    return sorted(candidates, key=lambda c: (not c.is_first_choice, -c.vote_count))


def detect_boundary_ties(
    result: PositionResult, seated: Mapping[str, set[str]]
) -> TieAnalysis:
    """Detect a tie at a position's seat-count cutoff.

    Two situations contest the last seat(s):

    - more candidates are seated than there are seats, because the pass
      that filled the last seat(s) took everyone tied at its cutoff. The
      cutoff is the vote count of the last seat in seating order.
    - an unseated contender has as many votes as the lowest-voted seated
      candidate, whichever choice each of them registered.

    Equal vote counts entirely inside the seated region are not reported,
    and neither are unseated candidates with more votes than a first-choice
    winner: breaking either would not change who is seated.

    Example: 2 seats, first-choice A=10, B=8, C=8 -> all three seated, one
    TieGroup {B, C} at 8 votes starting at rank 2 with 1 seat contested.
    """
    if result.is_void:
        return TieAnalysis()

    ranked = contenders(result, seated)
    winners = [c for c in ranked if c.is_winner]
    if not winners:
        return TieAnalysis()

    seats = result.seat_count
    if len(winners) > seats:
        cutoff = seating_order(winners)[seats - 1].vote_count
    else:
        cutoff = min(c.vote_count for c in winners)
        if not any(not c.is_winner and c.vote_count == cutoff for c in ranked):
            return TieAnalysis()

    tied = [c.user_id for c in ranked if c.vote_count == cutoff]
    if len(tied) < 2:
        return TieAnalysis()

    above = sum(1 for c in winners if c.vote_count != cutoff)
    group = TieGroup(
        position_id=result.position_id,
        boundary_rank=above + 1,
        candidate_ids=tuple(tied),
        votes=cutoff,
        seats_contested=min(seats, len(winners)) - above,
    )
    logger.info(
        "Position %s: boundary tie between %s at %d votes for %d seat(s)",
        result.position_id, list(group.candidate_ids), group.votes, group.seats_contested,
    )
    return TieAnalysis(tie_groups=(group,))


@register_stage
class TieStage(Stage):
    order = 40

    @property
    def name(self) -> str:
        return "ties"

    def run(self, state: PipelineState) -> PipelineState:
        seated = winning_positions(state.positions)
        positions = {
            position_id: replace(result, tie_analysis=detect_boundary_ties(result, seated))
            for position_id, result in state.positions.items()
        }
        return replace(state, positions=positions)
