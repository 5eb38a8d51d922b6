from enum import Enum
from typing import Any, Dict, Protocol, runtime_checkable


class Values(Enum):
    """Which representation of validated values is bound or returned."""
    NORMALIZED = "normalized"
    RAW = "raw"
    AS_ARRAY = "as_array"


class BindOnValidate(Enum):
    ON_VALIDATE = "on_validate"
    MANUAL = "manual"


@runtime_checkable
class InputProvider(Protocol):
    """An element that declares the input specification used to validate it."""

    def get_input_specification(self) -> Dict[str, Any]:
        ...


@runtime_checkable
class InputFilterProvider(Protocol):
    """A fieldset (or form) that declares the input filter specification of its children."""

    def get_input_filter_specification(self) -> Dict[str, Any]:
        ...


@runtime_checkable
class InputFilterAware(Protocol):
    """An object that carries its own input filter."""

    def get_input_filter(self) -> Any:
        ...


@runtime_checkable
class ElementPrepareAware(Protocol):
    def prepare_element(self, form: Any) -> None:
        ...
