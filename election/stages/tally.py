"""Tally: count each position's ballots into candidate vote totals."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace

from election.models import (
    BallotRecord,
    CandidateResult,
    ChoiceType,
    Election,
    PositionConfig,
    PositionResult,
    Registration,
)
from election.stages import register_stage
from election.stages.base import PipelineState, Stage

logger = logging.getLogger(__name__)

VOID_NO_CANDIDATES = "no one registered"
VOID_NO_VOTES = "no one voted"


def unique_registrations(registrations: Iterable[Registration]) -> list[Registration]:
    """Keep each person's first registration, dropping later duplicates."""
    seen: dict[str, Registration] = {}
    for reg in registrations:
        if reg.user_id in seen:
            logger.warning("Ignoring duplicate registration for user %s", reg.user_id)
            continue
        seen[reg.user_id] = reg
    return list(seen.values())


def index_ballots(election: Election, ballots: Iterable[BallotRecord]) -> dict[str, BallotRecord]:
    """Map position id -> ballot record, skipping records that can't be used."""
    indexed: dict[str, BallotRecord] = {}
    for ballot in ballots:
        if ballot.position_id not in election.positions:
            logger.warning(
                "Skipping ballot record for unknown position %r in election %s",
                ballot.position_id, election.election_id,
            )
            continue
        if ballot.position_id in indexed:
            logger.warning(
                "Skipping extra ballot record for position %s in election %s",
                ballot.position_id, election.election_id,
            )
            continue
        indexed[ballot.position_id] = ballot
    return indexed


def collect_candidates(position_id: str, registrations: Iterable[Registration]) -> list[CandidateResult]:
    """Build a position's candidates: first-choice registrants, then second-choice ones.

    A person listed twice for the same position keeps the first-seen entry.
    """
    registrations = list(registrations)
    candidates: dict[str, CandidateResult] = {}
    for choice_type in (ChoiceType.FIRST, ChoiceType.SECOND):
        for reg in registrations:
            chosen = reg.first_choice if choice_type is ChoiceType.FIRST else reg.second_choice
            if chosen == position_id and reg.user_id not in candidates:
                candidates[reg.user_id] = CandidateResult(
                    user_id=reg.user_id,
                    display_name=reg.display_name,
                    choice_type=choice_type,
                )
    return list(candidates.values())


def display_order(candidates: Iterable[CandidateResult]) -> list[CandidateResult]:
    """Sort by votes descending, first choice before second, then input order."""
    return sorted(candidates, key=lambda c: (-c.vote_count, not c.is_first_choice))


def _candidate_key(raw) -> str | None:
    # Stored ids may come back as ints; bools and containers are junk.
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        return None
    return str(raw)


def count_votes(
    position_id: str, candidate_ids: Iterable[str], votes: Mapping[str, object]
) -> tuple[dict[str, int], int, int]:
    """Count one position's ballots.

    Each voter's selection is an ordered set: a candidate listed twice by the
    same voter gets one vote. Selections that are not lists and ids of
    unknown candidates are skipped.

    Returns (votes per candidate, total votes, total voters).
    """
    counts = {cid: 0 for cid in candidate_ids}
    total_votes = 0
    total_voters = 0
    skipped_ids = 0

    for voter_id, selection in votes.items():
        if not isinstance(selection, (list, tuple)):
            logger.warning(
                "Skipping malformed vote list from voter %s in position %s", voter_id, position_id
            )
            continue
        total_voters += 1

        seen: set[str] = set()
        for raw in selection:
            cid = _candidate_key(raw)
            if cid is None or cid not in counts:
                skipped_ids += 1
                continue
            if cid in seen:
                continue
            seen.add(cid)
            counts[cid] += 1
            total_votes += 1

    if skipped_ids:
        logger.warning(
            "Skipped %d vote(s) for unknown candidates in position %s", skipped_ids, position_id
        )
    return counts, total_votes, total_voters


def tally_position(
    position: PositionConfig,
    registrations: Iterable[Registration],
    ballot: BallotRecord | None,
) -> PositionResult:
    """Tally a single position.

    Args:
        position: The position's configuration
        registrations: All (deduplicated) registrations of the election
        ballot: The position's ballot record, or None if nobody voted

    Returns:
        PositionResult with candidates in display order. The position is void
        if nobody registered for it or nobody cast a well-formed ballot.
    """
    candidates = collect_candidates(position.position_id, registrations)
    if not candidates:
        logger.info("Position %s is void: %s", position.position_id, VOID_NO_CANDIDATES)
        return PositionResult(position=position, is_void=True, void_reason=VOID_NO_CANDIDATES)

    votes = ballot.votes if ballot is not None else {}
    counts, total_votes, total_voters = count_votes(
        position.position_id, [c.user_id for c in candidates], votes
    )

    if total_voters == 0:
        logger.info("Position %s is void: %s", position.position_id, VOID_NO_VOTES)
        return PositionResult(
            position=position,
            candidates=tuple(display_order(candidates)),
            is_void=True,
            void_reason=VOID_NO_VOTES,
        )

    counted = [replace(c, vote_count=counts[c.user_id]) for c in candidates]
    logger.debug(
        "Position %s: %d votes from %d voters", position.position_id, total_votes, total_voters
    )
    return PositionResult(
        position=position,
        candidates=tuple(display_order(counted)),
        total_votes=total_votes,
        total_voters=total_voters,
    )


@register_stage
class TallyStage(Stage):
    """Count ballots for every position, in configuration order."""

    order = 10

    @property
    def name(self) -> str:
        return "tally"

    def run(self, state: PipelineState) -> PipelineState:
        registrations = unique_registrations(state.registrations)
        ballots = index_ballots(state.election, state.ballots)
        positions = {
            position_id: tally_position(position, registrations, ballots.get(position_id))
            for position_id, position in state.election.positions.items()
        }
        return replace(state, registrations=tuple(registrations), positions=positions)
