"""Pipeline stages that turn registrations and ballots into final results."""

from .base import PipelineState, Stage

# Stage registry - import stage modules to register them
_stages: list[type[Stage]] = []


def register_stage(stage_class: type[Stage]) -> type[Stage]:
    """Decorator to register a pipeline stage class."""
    _stages.append(stage_class)
    return stage_class


def get_pipeline() -> list[Stage]:
    """Return instances of all registered stages in run order."""
    return [stage_class() for stage_class in sorted(_stages, key=lambda s: s.order)]
