"""Orchestrator: run every pipeline stage over one election."""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from election.errors import (
    ElectionComputationError,
    ElectionDataError,
    ElectionError,
    ElectionNotFoundError,
)
from election.models import BallotRecord, Election, ElectionResults, Registration
from election.stages import PipelineState, get_pipeline
from election.statistics import get_election_statistics

# Import stages to register them
from election.stages import tally  # noqa: F401
from election.stages import allocation  # noqa: F401
from election.stages import conflicts  # noqa: F401
from election.stages import ties  # noqa: F401
from election.stages import chains  # noqa: F401
from election.stages import dependencies  # noqa: F401
from election.stages import status  # noqa: F401

logger = logging.getLogger(__name__)


def validate_election(election: Election | None) -> Election:
    """Check that an election has everything a run needs.

    Raises:
        ElectionNotFoundError: If there is no election
        ElectionDataError: If position data is missing or inconsistent
    """
    if election is None:
        raise ElectionNotFoundError("Election does not exist", stage="validate")
    if not election.positions:
        raise ElectionDataError(
            "Election has no positions", election_id=election.election_id, stage="validate"
        )
    for position_id, position in election.positions.items():
        if position is None or position.position_id != position_id:
            raise ElectionDataError(
                f"Position data for {position_id!r} is missing or mismatched",
                election_id=election.election_id, stage="validate",
            )
        if position.seat_count < 1:
            raise ElectionDataError(
                f"Position {position_id!r} must have at least one seat",
                election_id=election.election_id, stage="validate",
            )
    return election


def compute_election_results(
    election: Election | None,
    registrations: Iterable[Registration] | None,
    ballots: Iterable[BallotRecord] | None,
    *,
    now: datetime | None = None,
) -> ElectionResults:
    """Compute the results of every position of an election.

    This is a pure function of its inputs: the same election, registrations
    and ballots always give the same results (apart from ``now``, which
    defaults to the current UTC time and only feeds the report timestamp).

    Args:
        election: The election, or None if the caller could not find it
        registrations: Registrations for the election
        ballots: One ballot record per position

    Returns:
        ElectionResults for all positions, in configuration order

    Raises:
        ElectionNotFoundError: If ``election`` is None
        ElectionDataError: If election or position data is missing
        ElectionComputationError: If a stage fails unexpectedly
    """
    election = validate_election(election)
    state = PipelineState(
        election=election,
        registrations=tuple(registrations or ()),
        ballots=tuple(ballots or ()),
    )

    for stage in get_pipeline():
        logger.debug("Election %s: running stage %s", election.election_id, stage.name)
        try:
            state = stage.run(state)
        except ElectionError as e:
            if e.election_id is None:
                e.election_id = election.election_id
            if e.stage is None:
                e.stage = stage.name
            raise
        except Exception as e:
            raise ElectionComputationError(
                f"Failed to compute results: {e}",
                election_id=election.election_id, stage=stage.name,
            ) from e

    results = ElectionResults(
        election_id=election.election_id,
        positions=state.positions,
        generated_at=now or datetime.now(timezone.utc),
        dependencies=state.dependencies,
        cycles=state.cycles,
    )
    logger.info(
        "Election %s: computed %d positions (ties: %s, dependencies: %d)",
        election.election_id, len(results.positions), results.has_any_ties, len(results.dependencies),
    )
    return results


def decode_records(
    election_record: Mapping[str, Any] | None,
    registration_records: Iterable[Mapping[str, Any]] | None,
    ballot_records: Iterable[Mapping[str, Any]] | None,
) -> tuple[Election | None, list[Registration], list[BallotRecord]]:
    """Turn stored JSON-like records into model objects.

    Registration and ballot records that can't be decoded are skipped with a
    warning, like malformed ballots inside a record. A bad election record
    is fatal.
    """
    election = Election.from_dict(election_record) if election_record is not None else None

    registrations = []
    for record in registration_records or ():
        if not isinstance(record, Mapping):
            logger.warning("Skipping malformed registration record: %r", record)
            continue
        try:
            registrations.append(Registration.from_dict(record))
        except ElectionDataError as e:
            logger.warning("Skipping registration: %s", e)

    ballots = []
    for record in ballot_records or ():
        if not isinstance(record, Mapping):
            logger.warning("Skipping malformed ballot record: %r", record)
            continue
        ballots.append(BallotRecord.from_dict(record))
    return election, registrations, ballots


def generate_election_report(
    election: Election | None,
    registrations: Iterable[Registration] | None,
    ballots: Iterable[BallotRecord] | None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the full JSON-serializable report: election, statistics and results."""
    registrations = list(registrations or ())
    ballots = list(ballots or ())
    now = now or datetime.now(timezone.utc)

    results = compute_election_results(election, registrations, ballots, now=now)
    return {
        "election": {
            "id": election.election_id,
            "name": election.name,
            "status": election.status.value,
            "schedule": election.schedule,
        },
        "statistics": get_election_statistics(election, registrations, ballots),
        "results": results.to_dict(),
        "generatedAt": now.isoformat(),
    }
