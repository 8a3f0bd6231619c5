"""
Error taxonomy for the detection pipeline.

Every pipeline error carries a (title, message) pair ready to be shown
to the user. Construction-time problems (missing model files, invalid
configuration) use the built-in FileNotFoundError / ValueError /
RuntimeError instead and are not part of this hierarchy.
"""


class PipelineError(Exception):
    """Base class for errors reported to the presentation layer."""

    title = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PreconditionError(PipelineError):
    """Detection was requested without a usable photo."""

    title = "Alert"


class LocatorError(PipelineError):
    """The face locator failed on the photo."""


class ModelLoadError(PipelineError):
    """The age classification model could not be loaded."""

    def __init__(self, message: str = "Model couldn't be loaded") -> None:
        super().__init__(message)


class ClassificationError(PipelineError):
    """Running the age classifier on a face failed."""
