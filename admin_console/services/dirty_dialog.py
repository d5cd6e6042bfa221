from __future__ import annotations

import copy
import dataclasses
import enum
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

from admin_console.services.mutation_gateway import MutationError

_LOG = logging.getLogger("admin_console.dialogs")

FormValues = TypeVar("FormValues")


class DialogPhase(str, enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    CONFIRMING_CLOSE = "confirming_close"


class DialogStateError(Exception):
    pass


def _with_field(values: Any, name: str, value: Any) -> Any:
    if isinstance(values, dict):
        if name not in values:
            raise KeyError(name)
        updated = dict(values)
        updated[name] = value
        return updated
    if isinstance(values, BaseModel):
        if name not in type(values).model_fields:
            raise KeyError(name)
        return values.model_copy(update={name: value})
    if dataclasses.is_dataclass(values) and not isinstance(values, type):
        return dataclasses.replace(values, **{name: value})
    raise TypeError(f"Unsupported form values type: {type(values).__name__}")


class DirtyDialog(Generic[FormValues]):
    """Add/edit form lifecycle guarded by an unsaved-changes confirmation.

    ``dirty`` is derived by comparing the current values with the snapshot
    taken when the dialog opened, so editing a field back to its original
    value makes the form clean again. Every dismissal route calls
    ``request_close``.
    """

    def __init__(self, defaults: Callable[[], FormValues]):
        self._defaults = defaults
        self.phase = DialogPhase.CLOSED
        self.baseline: FormValues = defaults()
        self.current: FormValues = defaults()
        self.submitting = False
        self.last_error: MutationError | None = None

    @property
    def is_open(self) -> bool:
        return self.phase is not DialogPhase.CLOSED

    @property
    def dirty(self) -> bool:
        return self.current != self.baseline

    def _require(self, *phases: DialogPhase) -> None:
        if self.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise DialogStateError(f"Dialog is {self.phase.value}; expected {allowed}")

    def _reset(self) -> None:
        self.phase = DialogPhase.CLOSED
        self.baseline = self._defaults()
        self.current = self._defaults()
        self.last_error = None

    def open(self, initial: Optional[FormValues] = None) -> None:
        self._require(DialogPhase.CLOSED)
        snapshot = initial if initial is not None else self._defaults()
        self.baseline = copy.deepcopy(snapshot)
        self.current = copy.deepcopy(snapshot)
        self.last_error = None
        self.phase = DialogPhase.OPEN

    def set_field(self, name: str, value: Any) -> None:
        self._require(DialogPhase.OPEN)
        self.current = _with_field(self.current, name, value)

    def replace(self, values: FormValues) -> None:
        self._require(DialogPhase.OPEN)
        self.current = copy.deepcopy(values)

    def request_close(self) -> DialogPhase:
        if self.phase is DialogPhase.CLOSED:
            return self.phase
        if self.phase is DialogPhase.CONFIRMING_CLOSE:
            return self.phase
        if self.dirty:
            self.phase = DialogPhase.CONFIRMING_CLOSE
        else:
            self.phase = DialogPhase.CLOSED
            self.current = self._defaults()
        return self.phase

    def keep_editing(self) -> None:
        self._require(DialogPhase.CONFIRMING_CLOSE)
        self.phase = DialogPhase.OPEN

    def confirm_discard(self) -> None:
        self._require(DialogPhase.CONFIRMING_CLOSE)
        self._reset()

    async def submit(self, handler: Callable[[FormValues], Awaitable[Any]]) -> Any:
        """Run ``handler`` with the current values.

        Success closes the dialog without the dirty check. A ``MutationError``
        keeps the dialog open and is stored on ``last_error``; ``None`` is
        returned. A second submit while one is pending is ignored.
        """
        self._require(DialogPhase.OPEN)
        if self.submitting:
            _LOG.info("Ignoring submit while a previous submit is pending")
            return None
        self.submitting = True
        self.last_error = None
        try:
            result = await handler(copy.deepcopy(self.current))
        except MutationError as exc:
            self.last_error = exc
            return None
        finally:
            self.submitting = False
        self._reset()
        return result
