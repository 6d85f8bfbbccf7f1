"""Chain-Effect Analyzer: find positions waiting on another position's tie.

If a candidate tied in position A is also the second-choice backup in
position B, whether they win A decides whether B may seat them. B then
depends on A, recorded as a Dependency edge B -> A.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace

from election.models import ChoiceType, Dependency, PositionResult, Registration
from election.stages import register_stage
from election.stages.base import (
    PipelineState,
    Stage,
    select_with_ties,
    winning_positions,
    wins_elsewhere,
)

logger = logging.getLogger(__name__)

REASON_SECOND_CHOICE_BACKUP = "tied candidate is a second-choice backup"


def _is_contingent(
    dependent: PositionResult, user_id: str, seated: Mapping[str, set[str]]
) -> bool:
    """Would this backup candidate reach the dependent position's seats if eligible?

    Seats are filled the way allocation fills them: first-choice contenders
    first, then second-choice ones including the backup. The backup counts
    as reaching a seat if selected, or if level with the lowest-voted seated
    candidate.
    """
    candidate = dependent.get_candidate(user_id)
    if candidate is None or candidate.choice_type is not ChoiceType.SECOND:
        return False
    if candidate.vote_count == 0:
        return False

    pool = [
        c for c in dependent.candidates
        if c.vote_count > 0
        and c.user_id != user_id
        and not wins_elsewhere(c.user_id, dependent.position_id, seated)
    ]
    seats = dependent.seat_count
    taken = select_with_ties([c for c in pool if c.is_first_choice], seats)
    second_choice = [c for c in pool if not c.is_first_choice] + [candidate]
    taken += select_with_ties(second_choice, seats - len(taken))

    if any(c.user_id == user_id for c in taken):
        return True
    return bool(taken) and candidate.vote_count == min(c.vote_count for c in taken)


def analyze_chain_effects(
    positions: Mapping[str, PositionResult],
    registrations: Iterable[Registration],
) -> list[Dependency]:
    """Build the dependency edges created by tied candidates.

    Args:
        positions: Position results with tie analysis filled in
        registrations: Deduplicated registrations

    Returns:
        Dependency edges in position order, then tie order
    """
    backup_position = {
        reg.user_id: reg.second_choice for reg in registrations if reg.second_choice
    }
    seated = winning_positions(positions)

    dependencies: list[Dependency] = []
    for source_id, source in positions.items():
        if source.is_void:
            continue
        for group in source.tie_analysis.tie_groups:
            for user_id in group.candidate_ids:
                dependent_id = backup_position.get(user_id)
                if dependent_id is None or dependent_id == source_id:
                    continue
                dependent = positions.get(dependent_id)
                if dependent is None or dependent.is_void:
                    continue
                if _is_contingent(dependent, user_id, seated):
                    dependencies.append(Dependency(
                        dependent_position_id=dependent_id,
                        source_position_id=source_id,
                        user_id=user_id,
                        reason=REASON_SECOND_CHOICE_BACKUP,
                    ))
                    logger.info(
                        "Position %s depends on the tie in %s through %s",
                        dependent_id, source_id, user_id,
                    )
    return dependencies


def find_dependency_cycles(dependencies: Iterable[Dependency]) -> list[tuple[str, ...]]:
    """Find cycles in the position dependency graph.

    Cycles are not resolved automatically: each is reported once, as the
    positions along it in the order the search found them.
    """
    graph: dict[str, list[str]] = {}
    for dep in dependencies:
        targets = graph.setdefault(dep.dependent_position_id, [])
        if dep.source_position_id not in targets:
            targets.append(dep.source_position_id)

    cycles: list[tuple[str, ...]] = []
    found: set[frozenset[str]] = set()
    visiting: set[str] = set()
    done: set[str] = set()
    path: list[str] = []

    def visit(node: str) -> None:
        visiting.add(node)
        path.append(node)
        for target in graph.get(node, []):
            if target in visiting:
                cycle = tuple(path[path.index(target):])
                if frozenset(cycle) not in found:
                    found.add(frozenset(cycle))
                    cycles.append(cycle)
            elif target not in done:
                visit(target)
        path.pop()
        visiting.discard(node)
        done.add(node)

    for node in list(graph):
        if node not in done:
            visit(node)

    for cycle in cycles:
        logger.warning("Unresolvable dependency cycle between positions %s", list(cycle))
    return cycles


@register_stage
class ChainEffectStage(Stage):
    order = 50

    @property
    def name(self) -> str:
        return "chain-effects"

    def run(self, state: PipelineState) -> PipelineState:
        dependencies = analyze_chain_effects(state.positions, state.registrations)
        cycles = find_dependency_cycles(dependencies)
        return replace(state, dependencies=tuple(dependencies), cycles=tuple(cycles))
