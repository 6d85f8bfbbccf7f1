"""Registration and turnout statistics for an election."""

from collections.abc import Iterable
from typing import Any

from election.models import BallotRecord, Election, Registration

UNKNOWN_POSITION = "unknown position"


def get_election_statistics(
    election: Election,
    registrations: Iterable[Registration],
    ballots: Iterable[BallotRecord],
) -> dict[str, Any]:
    """Summarize how many people registered and voted, per position.

    ``voting.totalVoters`` is the largest turnout of any single position,
    since one person may vote in several positions.
    """
    registrations = list(registrations)
    stats: dict[str, Any] = {
        "election": {
            "name": election.name,
            "status": election.status.value,
            "positionCount": len(election.positions),
        },
        "registration": {
            "total": len(registrations),
            "byPosition": {},
        },
        "voting": {
            "totalVoters": 0,
            "byPosition": {},
        },
    }

    candidate_counts: dict[str, int] = {}
    for position_id, position in election.positions.items():
        first_choice = sum(1 for reg in registrations if reg.first_choice == position_id)
        second_choice = sum(1 for reg in registrations if reg.second_choice == position_id)
        candidate_counts[position_id] = first_choice + second_choice
        stats["registration"]["byPosition"][position_id] = {
            "positionName": position.name,
            "firstChoice": first_choice,
            "secondChoice": second_choice,
            "total": first_choice + second_choice,
        }

    for ballot in ballots:
        position = election.positions.get(ballot.position_id)
        voter_count = len(ballot.votes)
        stats["voting"]["byPosition"][ballot.position_id] = {
            "positionName": position.name if position else UNKNOWN_POSITION,
            "voterCount": voter_count,
            "candidateCount": candidate_counts.get(ballot.position_id, 0),
        }
        stats["voting"]["totalVoters"] = max(stats["voting"]["totalVoters"], voter_count)

    return stats
