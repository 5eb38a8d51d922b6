from typing import Any, Callable, Dict, List, Optional

from metaform.input_filter.validator import Validator

_UNSET = object()  # Sentinel to tell a missing value from an explicit None


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, dict, tuple)) and not value)


class Input:
    """
    A single named field of an input filter.

    Holds the raw submitted value, the filters that normalize it and the
    validators that check it. Validation results are kept as a list of
    messages until the next call to ``is_valid``.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self.required: bool = True
        self.allow_empty: bool = False
        self.continue_if_empty: bool = False
        self.break_on_failure: bool = False
        self.error_message: Optional[str] = None
        self.filters: List[Callable[[Any], Any]] = []
        self.validators: List[Callable[..., Optional[str]]] = []
        self._raw_value: Any = _UNSET
        self._fallback_value: Any = _UNSET
        self._messages: List[str] = []

    def __repr__(self) -> str:
        return f"<Input name={self.name!r} required={self.required}>"

    # -- Value handling ---
    def set_value(self, value: Any) -> 'Input':
        self._raw_value = value
        return self

    def reset_value(self) -> 'Input':
        self._raw_value = _UNSET
        return self

    def has_value(self) -> bool:
        return self._raw_value is not _UNSET

    def get_raw_value(self) -> Any:
        return None if self._raw_value is _UNSET else self._raw_value

    def get_value(self) -> Any:
        value = self.get_raw_value()
        for filter_func in self.filters:
            value = filter_func(value)
        return value

    def set_fallback_value(self, value: Any) -> 'Input':
        self._fallback_value = value
        return self

    def has_fallback(self) -> bool:
        return self._fallback_value is not _UNSET

    def get_fallback_value(self) -> Any:
        return None if self._fallback_value is _UNSET else self._fallback_value

    # -- Chains ---
    def add_filter(self, filter_func: Callable[[Any], Any]) -> 'Input':
        self.filters.append(filter_func)
        return self

    def add_validator(self, validator: Callable[..., Optional[str]]) -> 'Input':
        self.validators.append(validator)
        return self

    def merge(self, other: 'Input') -> 'Input':
        """
        Merges another input into this one.

        The other input's flags win; its filters and validators are appended
        to ours, and its value is taken over when it has one.
        """
        self.break_on_failure = other.break_on_failure
        self.continue_if_empty = other.continue_if_empty
        self.error_message = other.error_message
        self.name = other.name
        self.required = other.required
        self.allow_empty = other.allow_empty
        if other.has_fallback():
            self.set_fallback_value(other.get_fallback_value())
        if other.has_value():
            self.set_value(other.get_raw_value())

        self.filters.extend(f for f in other.filters if f not in self.filters)
        self.validators.extend(v for v in other.validators if v not in self.validators)
        return self

    # -- Validation ---
    def is_valid(self, context: Optional[Dict[str, Any]] = None) -> bool:
        self._messages = []
        value = self.get_value()
        has_value = self.has_value()
        empty = _is_empty(value)

        if not has_value and self.has_fallback():
            self.set_value(self.get_fallback_value())
            return True

        if not has_value and not self.required:
            return True

        if not has_value:
            self._messages.append(self.error_message or "Value is required and can't be empty")
            return False

        if empty and not self.continue_if_empty and (not self.required or self.allow_empty):
            return True

        if self.required and not self.allow_empty and not self.continue_if_empty:
            error = Validator.not_empty(value)
            if error:
                self._messages.append(self.error_message or error)
                return False

        for validator in self.validators:
            if getattr(validator, "uses_context", False):
                error = validator(value, context)
            else:
                error = validator(value)
            if error:
                self._messages.append(error)
                if self.break_on_failure:
                    break

        if self._messages and self.has_fallback():
            self.set_value(self.get_fallback_value())
            self._messages = []
            return True

        if self._messages and self.error_message:
            self._messages = [self.error_message]

        return not self._messages

    def get_messages(self) -> List[str]:
        return list(self._messages)
