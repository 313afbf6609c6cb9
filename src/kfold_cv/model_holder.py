"""Exclusive slot for the model trained on the last fold of a run."""

from typing import Any


class ModelNotInitializedError(RuntimeError):
    """Raised when the model is requested before any run has completed."""


class ModelHolder:
    """Owns at most one model; an empty slot means no run has completed yet."""

    def __init__(self):
        self._model: Any | None = None
        self._is_set = False

    @property
    def is_set(self) -> bool:
        return self._is_set

    def set(self, model: Any) -> None:
        """Take the model, dropping whichever model was held before."""
        self._model = model
        self._is_set = True

    def get(self) -> Any:
        if not self._is_set:
            raise ModelNotInitializedError(
                "Attempted to access an uninitialized model; call evaluate() first"
            )
        return self._model

    def clear(self) -> None:
        self._model = None
        self._is_set = False
