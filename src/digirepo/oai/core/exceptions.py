from typing import Any


class BaseDigirepoException(Exception):
    """Base class for all Exceptions raised by the OAI-PMH provider."""

    def __init__(self, message: str | None = None):
        """Initializes a new instance of BaseDigirepoException class

        :param message: String containing description of the exception that occurred
        """
        super().__init__(message)
        self.message = message

    def __getstate__(self) -> dict[str, Any]:
        return {"dict": self.__dict__, "args": self.args}

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        assert state is not None
        self.__dict__.update(state["dict"])
        self.args = state["args"]

    def __reduce__(self) -> tuple[Any, ...]:
        state = self.__getstate__()
        return self.__class__.__new__, (self.__class__,), state


class DigirepoValueError(BaseDigirepoException, ValueError): ...


class IntegrationException(BaseDigirepoException):
    """An exception that happens when the provider's connection to a
    collaborator (the object store, a crosswalk) is broken.

    This may be because communication failed, or because local
    configuration is missing or obviously wrong (CannotLoadConfiguration).
    """

    def __init__(self, message: str | None, debug_message: str | None = None) -> None:
        """Constructor.

        :param message: The normal message passed to any Exception
        constructor.

        :param debug_message: An extra human-readable explanation of the
        problem, logged but never shown to harvesters.
        """
        super().__init__(message)
        self.debug_message = debug_message
