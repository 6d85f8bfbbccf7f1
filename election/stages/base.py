"""Abstract base class for pipeline stages."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from election.models import (
    BallotRecord,
    CandidateResult,
    Dependency,
    Election,
    PositionResult,
    Registration,
)


@dataclass(frozen=True)
class PipelineState:
    """Everything one run knows after a given stage.

    Stages never mutate a state; they return a new one with
    ``dataclasses.replace``. ``positions`` follows the election's
    configuration order.
    """
    election: Election
    registrations: tuple[Registration, ...] = ()
    ballots: tuple[BallotRecord, ...] = ()
    positions: dict[str, PositionResult] = field(default_factory=dict)
    dependencies: tuple[Dependency, ...] = ()
    cycles: tuple[tuple[str, ...], ...] = ()


class Stage(ABC):
    """Abstract base class for pipeline stages.

    Each stage turns one PipelineState into the next. Stages are registered
    via the @register_stage decorator in election/stages/__init__.py and run
    in ascending ``order``.
    """

    order: int = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name of this stage, used in logs and error context."""
        pass

    @abstractmethod
    def run(self, state: PipelineState) -> PipelineState:
        """Run this stage.

        Args:
            state: Output of the previous stage

        Returns:
            A new PipelineState; the input is left untouched
        """
        pass


def select_with_ties(candidates: Iterable[CandidateResult], seats: int) -> list[CandidateResult]:
    """Pick the ``seats`` highest-voted candidates, keeping everyone tied at the cutoff.

    The result can hold more than ``seats`` candidates when several share
    the cutoff vote count. Input order is kept among equal vote counts.
    """
    if seats <= 0:
        return []
    ranked = sorted(candidates, key=lambda c: c.vote_count, reverse=True)
    if len(ranked) <= seats:
        return ranked
    cutoff = ranked[seats - 1].vote_count
    return [c for c in ranked if c.vote_count >= cutoff]


def winning_positions(positions: Mapping[str, PositionResult]) -> dict[str, set[str]]:
    """Map each currently seated user id to the positions seating them."""
    seated: dict[str, set[str]] = {}
    for position_id, result in positions.items():
        if result.is_void:
            continue
        for c in result.winners:
            seated.setdefault(c.user_id, set()).add(position_id)
    return seated


def wins_elsewhere(user_id: str, position_id: str, seated: Mapping[str, set[str]]) -> bool:
    return bool(seated.get(user_id, set()) - {position_id})
