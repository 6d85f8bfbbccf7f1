"""Exceptions raised by the results engine."""


class ElectionError(Exception):
    """Error while computing an election's results.

    Attributes:
        election_id: Election being computed, if known
        stage: Name of the pipeline stage that failed, if any
    """

    def __init__(self, message: str, election_id: str | None = None, stage: str | None = None):
        super().__init__(message)
        self.election_id = election_id
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        context = []
        if self.election_id is not None:
            context.append(f"election={self.election_id}")
        if self.stage is not None:
            context.append(f"stage={self.stage}")
        if context:
            return f"{message} ({', '.join(context)})"
        return message


class ElectionNotFoundError(ElectionError):
    """Raised when the referenced election does not exist."""
    pass


class ElectionDataError(ElectionError, ValueError):
    """Raised when election or position data is missing or invalid.

    This is always fatal: the caller never receives a partial report.
    """
    pass


class ElectionComputationError(ElectionError):
    """Raised when a pipeline stage fails unexpectedly."""
    pass
