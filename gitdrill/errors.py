class DrillError(Exception):
    """Base class for all extraction pipeline errors."""


class FatalAcquisitionError(DrillError):
    """The repository could not be cloned, opened or its HEAD resolved."""


class FatalWalkError(DrillError):
    """Walking the commit history failed."""


class FatalExportError(DrillError):
    """An output writer or the content store could not be written."""


class RecoverableExtractionError(DrillError):
    """A single commit's tree could not be enumerated."""

    def __init__(self, commit_hash: str, message: str):
        super().__init__(f"{commit_hash}: {message}")
        self.commit_hash = commit_hash


class UnsupportedConfigurationError(DrillError):
    pass


class AnalysisCancelled(DrillError):
    pass
