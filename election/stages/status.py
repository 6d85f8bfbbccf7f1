"""Status Assigner: give every candidate its final label."""

from dataclasses import replace

from election.models import CandidateResult, CandidateStatus, PositionResult
from election.stages import register_stage
from election.stages.base import PipelineState, Stage


def candidate_status(candidate: CandidateResult, tied_ids: frozenset[str]) -> CandidateStatus:
    if candidate.user_id in tied_ids:
        return CandidateStatus.PENDING_TIE
    if candidate.pending_dependency:
        return CandidateStatus.PENDING_DEPENDENCY
    if candidate.is_winner:
        return CandidateStatus.WINNER
    if candidate.vote_count > 0:
        return CandidateStatus.ALTERNATE
    return CandidateStatus.NOT_SELECTED


def assign_statuses(result: PositionResult) -> PositionResult:
    if result.is_void:
        return result.with_candidates(
            replace(c, is_winner=False, status=CandidateStatus.NOT_SELECTED)
            for c in result.candidates
        )
    tied_ids = result.tie_analysis.tied_ids
    return result.with_candidates(
        replace(c, status=candidate_status(c, tied_ids)) for c in result.candidates
    )


@register_stage
class StatusStage(Stage):
    order = 70

    @property
    def name(self) -> str:
        return "status"

    def run(self, state: PipelineState) -> PipelineState:
        positions = {
            position_id: assign_statuses(result)
            for position_id, result in state.positions.items()
        }
        return replace(state, positions=positions)
