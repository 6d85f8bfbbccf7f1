"""Dependency Recalculator: hold back results that wait on another position's tie."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace

from election.models import ChoiceType, Dependency, PositionResult
from election.stages import register_stage
from election.stages.base import PipelineState, Stage

logger = logging.getLogger(__name__)


def _held_back(result: PositionResult, edges: list[Dependency]) -> dict[str, list[str]]:
    """Map user id -> source positions for everyone whose seat is in doubt.

    That is the shared backup candidate itself, plus every second-choice
    winner they could displace or tie with.
    """
    held: dict[str, list[str]] = {}

    def hold(user_id: str, source_id: str) -> None:
        sources = held.setdefault(user_id, [])
        if source_id not in sources:
            sources.append(source_id)

    for edge in edges:
        backup = result.get_candidate(edge.user_id)
        if backup is None:
            continue
        hold(backup.user_id, edge.source_position_id)
        for c in result.winners:
            if c.choice_type is ChoiceType.SECOND and c.vote_count <= backup.vote_count:
                hold(c.user_id, edge.source_position_id)
    return held


def recalculate_with_dependencies(
    positions: Mapping[str, PositionResult],
    dependencies: Iterable[Dependency],
    cycles: Iterable[tuple[str, ...]] = (),
) -> dict[str, PositionResult]:
    """Flag candidates of dependent positions as pending instead of final.

    Positions without dependency edges are returned unchanged. Positions on
    a dependency cycle are additionally marked ``dependency_cycle``.
    """
    edges_by_position: dict[str, list[Dependency]] = {}
    for dep in dependencies:
        edges_by_position.setdefault(dep.dependent_position_id, []).append(dep)
    in_cycle = {position_id for cycle in cycles for position_id in cycle}

    recalculated: dict[str, PositionResult] = {}
    for position_id, result in positions.items():
        edges = edges_by_position.get(position_id)
        if edges:
            held = _held_back(result, edges)
            logger.info("Position %s: results pending on %s", position_id, held)
            result = result.with_candidates(
                replace(c, pending_dependency=tuple(held[c.user_id])) if c.user_id in held else c
                for c in result.candidates
            )
        if position_id in in_cycle:
            result = replace(result, dependency_cycle=True)
        recalculated[position_id] = result
    return recalculated


@register_stage
class DependencyStage(Stage):
    order = 60

    @property
    def name(self) -> str:
        return "dependencies"

    def run(self, state: PipelineState) -> PipelineState:
        positions = recalculate_with_dependencies(state.positions, state.dependencies, state.cycles)
        return replace(state, positions=positions)
