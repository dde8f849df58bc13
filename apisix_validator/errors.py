"""Exception hierarchy for the image validator."""


class ValidatorError(Exception):
    """Base class for all validator errors."""


class SetupError(ValidatorError):
    """A precondition failed; validation cannot start."""


class EngineUnavailableError(SetupError):
    """The container engine is not installed or its daemon is not running."""


class ImageNotFoundError(SetupError):
    """The target image does not exist in the local image store."""

    def __init__(self, image: str) -> None:
        super().__init__(f"Image '{image}' does not exist locally")
        self.image = image


class EngineError(ValidatorError):
    """A single container engine invocation failed or timed out."""
