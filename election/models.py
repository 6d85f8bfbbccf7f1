"""Core data models for election inputs and computed results."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Self

from election.errors import ElectionDataError


class ElectionStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"


class ChoiceType(str, Enum):
    FIRST = "first"
    SECOND = "second"


class CandidateStatus(str, Enum):
    """Final label of a candidate, listed in priority order.

    ``winner`` only applies to a seated candidate who is neither in a
    boundary tie nor waiting on another position's tie.
    """
    WINNER = "winner"
    PENDING_TIE = "pending-tie"
    PENDING_DEPENDENCY = "pending-dependency"
    ALTERNATE = "alternate"
    NOT_SELECTED = "not-selected"


def _seat_count(raw: Any, position_id: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ElectionDataError(f"Position {position_id!r} has no valid seat count: {raw!r}")
    if raw < 1:
        raise ElectionDataError(f"Position {position_id!r} must have at least one seat, got {raw}")
    return raw


@dataclass(frozen=True)
class PositionConfig:
    """An electable office.

    Attributes:
        position_id: Identifier used by registrations and ballots
        name: Human-readable name of the position
        seat_count: Maximum number of winners (``maxWinners``)
    """
    position_id: str
    name: str
    seat_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.position_id, "name": self.name, "maxWinners": self.seat_count}

    @classmethod
    def from_dict(cls, position_id: str, data: Mapping[str, Any]) -> Self:
        raw_seats = data.get("maxWinners", data.get("seatCount"))
        return cls(
            position_id=str(position_id),
            name=str(data.get("name") or position_id),
            seat_count=_seat_count(raw_seats, str(position_id)),
        )


@dataclass(frozen=True)
class Election:
    """An election with its positions in configuration order.

    The order of ``positions`` is part of the contract: cross-position
    allocation walks positions in exactly this order.

    Example:
        >>> election = Election(
        ...     election_id="2024-board",
        ...     name="Board Election",
        ...     positions={
        ...         "chair": PositionConfig("chair", "Chair", 1),
        ...         "members": PositionConfig("members", "Members", 3),
        ...     },
        ... )
    """
    election_id: str
    name: str
    positions: dict[str, PositionConfig]
    status: ElectionStatus = ElectionStatus.CLOSED
    schedule: dict[str, Any] = field(default_factory=dict)

    @property
    def position_ids(self) -> list[str]:
        return list(self.positions)

    def get_position(self, position_id: str) -> PositionConfig:
        """Get a position's configuration, failing loudly if it is missing."""
        try:
            return self.positions[position_id]
        except KeyError:
            raise ElectionDataError(
                f"Unknown position {position_id!r}", election_id=self.election_id
            ) from None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build an Election from a stored election record.

        ``positions`` may be a mapping of position id -> {name, maxWinners}
        or a list of {id, name, maxWinners | seatCount}.
        """
        election_id = data.get("id") or data.get("electionId")
        if not election_id:
            raise ElectionDataError("Election record has no id")
        election_id = str(election_id)

        raw_positions = data.get("positions")
        positions: dict[str, PositionConfig] = {}
        try:
            if isinstance(raw_positions, Mapping):
                for position_id, position_data in raw_positions.items():
                    positions[str(position_id)] = PositionConfig.from_dict(position_id, position_data)
            elif isinstance(raw_positions, list):
                for position_data in raw_positions:
                    position_id = position_data.get("id")
                    if not position_id:
                        raise ElectionDataError(f"Position without an id: {position_data!r}")
                    positions[str(position_id)] = PositionConfig.from_dict(position_id, position_data)
        except ElectionDataError as e:
            e.election_id = election_id
            raise
        except AttributeError as e:
            raise ElectionDataError(f"Malformed position data: {e}", election_id=election_id) from e

        if not positions:
            raise ElectionDataError("Election has no positions", election_id=election_id)

        try:
            status = ElectionStatus(data.get("status") or ElectionStatus.CLOSED.value)
        except ValueError:
            raise ElectionDataError(
                f"Unknown election status {data.get('status')!r}", election_id=election_id
            ) from None

        return cls(
            election_id=election_id,
            name=str(data.get("name") or election_id),
            positions=positions,
            status=status,
            schedule=dict(data.get("schedule") or {}),
        )


@dataclass(frozen=True)
class Registration:
    """A person running for a first-choice and optional second-choice position."""
    user_id: str
    display_name: str
    first_choice: str
    second_choice: str | None = None

    def positions(self) -> list[tuple[str, ChoiceType]]:
        """Positions this person runs for, first choice first."""
        result = [(self.first_choice, ChoiceType.FIRST)]
        if self.second_choice:
            result.append((self.second_choice, ChoiceType.SECOND))
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        user_id = data.get("userId")
        first_choice = data.get("firstChoicePosition")
        if not user_id or not first_choice:
            raise ElectionDataError(f"Registration is missing userId or firstChoicePosition: {data!r}")
        second_choice = data.get("secondChoicePosition")
        return cls(
            user_id=str(user_id),
            display_name=str(data.get("userDisplayName") or data.get("displayName") or user_id),
            first_choice=str(first_choice),
            second_choice=str(second_choice) if second_choice else None,
        )


@dataclass(frozen=True)
class BallotRecord:
    """All ballots cast for one position.

    Attributes:
        position_id: Position the ballots belong to
        votes: voter_id -> candidate user ids selected by that voter. Entries
            are kept as stored; the tally skips anything that is not a list.
    """
    position_id: str
    votes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        votes = data.get("votes")
        return cls(
            position_id=str(data.get("positionId") or ""),
            votes=dict(votes) if isinstance(votes, Mapping) else {},
        )


@dataclass(frozen=True)
class CandidateResult:
    """A candidate's standing in one position.

    ``choice_type`` is fixed by registration. Only ``is_winner``, ``status``
    and ``pending_dependency`` change between pipeline stages, always on a
    fresh copy.
    """
    user_id: str
    display_name: str
    choice_type: ChoiceType
    vote_count: int = 0
    is_winner: bool = False
    status: CandidateStatus | None = None
    pending_dependency: tuple[str, ...] = ()  # source position ids

    @property
    def is_first_choice(self) -> bool:
        return self.choice_type is ChoiceType.FIRST

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "displayName": self.display_name,
            "votes": self.vote_count,
            "choiceType": self.choice_type.value,
            "isWinner": self.is_winner,
            "status": self.status.value if self.status else None,
            "dependsOn": list(self.pending_dependency),
        }


@dataclass(frozen=True)
class TieGroup:
    """Candidates with equal votes contesting the last seat(s) of a position.

    Attributes:
        position_id: Position with the tie
        boundary_rank: 1-indexed rank at which the tied run starts
        candidate_ids: Tied candidates in display order
        votes: Vote count shared by the tied candidates
        seats_contested: Seats left for the tied candidates to share
    """
    position_id: str
    boundary_rank: int
    candidate_ids: tuple[str, ...]
    votes: int
    seats_contested: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "positionId": self.position_id,
            "boundaryRank": self.boundary_rank,
            "candidates": list(self.candidate_ids),
            "votes": self.votes,
            "seatsContested": self.seats_contested,
        }


@dataclass(frozen=True)
class TieAnalysis:
    tie_groups: tuple[TieGroup, ...] = ()

    @property
    def has_ties(self) -> bool:
        return bool(self.tie_groups)

    @property
    def tied_ids(self) -> frozenset[str]:
        return frozenset(uid for group in self.tie_groups for uid in group.candidate_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hasTies": self.has_ties,
            "tieGroups": [group.to_dict() for group in self.tie_groups],
        }


@dataclass(frozen=True)
class Dependency:
    """``dependent_position_id`` cannot be finalized until the tie in
    ``source_position_id`` is resolved."""
    dependent_position_id: str
    source_position_id: str
    user_id: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "dependentPosition": self.dependent_position_id,
            "sourcePosition": self.source_position_id,
            "userId": self.user_id,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class PositionResult:
    """Outcome of one position.

    Candidates are kept in display order: votes descending, first choice
    before second choice, then registration order.
    """
    position: PositionConfig
    candidates: tuple[CandidateResult, ...] = ()
    total_votes: int = 0
    total_voters: int = 0
    is_void: bool = False
    void_reason: str | None = None
    tie_analysis: TieAnalysis = field(default_factory=TieAnalysis)
    dependency_cycle: bool = False

    @property
    def position_id(self) -> str:
        return self.position.position_id

    @property
    def seat_count(self) -> int:
        return self.position.seat_count

    @property
    def winners(self) -> list[CandidateResult]:
        return [c for c in self.candidates if c.is_winner]

    def get_candidate(self, user_id: str) -> CandidateResult | None:
        for c in self.candidates:
            if c.user_id == user_id:
                return c
        return None

    def with_candidates(self, candidates) -> Self:
        return replace(self, candidates=tuple(candidates))

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position.to_dict(),
            "candidates": [c.to_dict() for c in self.candidates],
            "totalVotes": self.total_votes,
            "totalVoters": self.total_voters,
            "isVoid": self.is_void,
            "voidReason": self.void_reason,
            "tieAnalysis": self.tie_analysis.to_dict(),
            "dependencyCycle": self.dependency_cycle,
        }


@dataclass(frozen=True)
class ElectionResults:
    """Results for every position of an election.

    ``to_dict()`` is the contract handed to reporting code: position id ->
    position result, plus a ``_tieAnalysis`` summary block.
    """
    election_id: str
    positions: dict[str, PositionResult]
    generated_at: datetime
    dependencies: tuple[Dependency, ...] = ()
    cycles: tuple[tuple[str, ...], ...] = ()

    @property
    def has_any_ties(self) -> bool:
        return any(r.tie_analysis.has_ties for r in self.positions.values())

    def get_winners(self) -> dict[str, list[str]]:
        """Get final winners (status ``winner``) per position."""
        return {
            position_id: [
                c.user_id for c in result.candidates if c.status is CandidateStatus.WINNER
            ]
            for position_id, result in self.positions.items()
        }

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            position_id: result.to_dict() for position_id, result in self.positions.items()
        }
        data["_tieAnalysis"] = {
            "hasAnyTies": self.has_any_ties,
            "dependencies": [d.to_dict() for d in self.dependencies],
            "cycles": [list(cycle) for cycle in self.cycles],
            "analysisTimestamp": self.generated_at.isoformat(),
        }
        return data
