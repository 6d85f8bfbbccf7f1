"""Shared test helpers."""

from datetime import datetime, timezone

from election.compute import compute_election_results
from election.models import (
    BallotRecord,
    Election,
    ElectionResults,
    PositionConfig,
    PositionResult,
    Registration,
)
from election.stages import PipelineState, get_pipeline

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_election(seats: dict[str, int], election_id: str = "test-election") -> Election:
    """Build an Election from {position_id: seat_count}, keeping dict order."""
    return Election(
        election_id=election_id,
        name=f"Election {election_id}",
        positions={
            position_id: PositionConfig(position_id, position_id.title(), n)
            for position_id, n in seats.items()
        },
    )


def make_registrations(table: dict[str, tuple[str, str | None]]) -> list[Registration]:
    """Build registrations from {user_id: (first_choice, second_choice)}."""
    return [
        Registration(user_id=uid, display_name=uid.upper(), first_choice=first, second_choice=second)
        for uid, (first, second) in table.items()
    ]


def make_ballots(counts: dict[str, dict[str, int]]) -> list[BallotRecord]:
    """Build ballot records that produce the given vote counts.

    Args:
        counts: {position_id: {candidate_id: votes}}

    Voter i of a position selects every candidate with more than i votes,
    so the number of voters equals the highest vote count.
    """
    ballots = []
    for position_id, tallies in counts.items():
        n_voters = max(tallies.values(), default=0)
        votes = {
            f"{position_id}-voter{i}": [cid for cid, n in tallies.items() if n > i]
            for i in range(n_voters)
        }
        ballots.append(BallotRecord(position_id=position_id, votes=votes))
    return ballots


def run_election(
    seats: dict[str, int],
    registrations: dict[str, tuple[str, str | None]],
    counts: dict[str, dict[str, int]],
) -> ElectionResults:
    """Run the whole engine on compact tables."""
    return compute_election_results(
        make_election(seats), make_registrations(registrations), make_ballots(counts), now=FIXED_NOW
    )


def run_stages_until(
    stage_name: str,
    seats: dict[str, int],
    registrations: dict[str, tuple[str, str | None]],
    counts: dict[str, dict[str, int]],
) -> PipelineState:
    """Run the pipeline up to and including the named stage."""
    state = PipelineState(
        election=make_election(seats),
        registrations=tuple(make_registrations(registrations)),
        ballots=tuple(make_ballots(counts)),
    )
    for stage in get_pipeline():
        state = stage.run(state)
        if stage.name == stage_name:
            return state
    raise ValueError(f"No stage named {stage_name!r}")


def winner_ids(result: PositionResult) -> list[str]:
    return [c.user_id for c in result.candidates if c.is_winner]


def statuses(result: PositionResult) -> dict[str, str]:
    return {c.user_id: c.status.value for c in result.candidates}


def vote_counts(result: PositionResult) -> dict[str, int]:
    return {c.user_id: c.vote_count for c in result.candidates}
