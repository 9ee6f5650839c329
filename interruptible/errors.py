"""Error types raised by interruptible."""


class InterruptibleError(Exception):
    """Base class for errors raised by the controller itself."""


class NotAStepSequenceError(InterruptibleError, TypeError):
    """Raised when the wrapped factory does not return a generator."""

    def __init__(self, factory_name: str, returned: object) -> None:
        self.factory_name = factory_name
        self.returned_type = type(returned).__name__
        super().__init__(
            f"{factory_name}() returned {self.returned_type}; expected a generator or "
            "async generator. Define it with `yield` so each pending step can be awaited."
        )


class InvalidOptionsError(InterruptibleError, ValueError):
    """Raised when options cannot be loaded or contain invalid values."""

    def __init__(self, details: str) -> None:
        super().__init__(f"Invalid interruptible options: {details}")
