from typing import Any, Callable, Iterable
import re

FilterFunc = Callable[[Any], Any]

_TAG_PATTERN = re.compile(r"<[^>]*>")


class Filter:
    """
    Built-in value filters.

    A filter takes a raw value and returns the normalized one. Filters never
    fail: values they do not understand are returned unchanged.
    """

    @staticmethod
    def string_trim(value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @staticmethod
    def string_to_lower(value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @staticmethod
    def string_to_upper(value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @staticmethod
    def strip_tags(value: Any) -> Any:
        if isinstance(value, str):
            return _TAG_PATTERN.sub("", value)
        return value

    @staticmethod
    def to_int(value: Any) -> Any:
        if isinstance(value, bool) or value is None:
            return value
        try:
            return int(float(value))
        except (ValueError, TypeError):
            return value

    @staticmethod
    def to_float(value: Any) -> Any:
        if isinstance(value, bool) or value is None:
            return value
        try:
            return float(value)
        except (ValueError, TypeError):
            return value

    @staticmethod
    def to_null(value: Any) -> Any:
        """Turns empty strings and empty containers into None."""
        if isinstance(value, str) and value == "":
            return None
        if isinstance(value, (list, dict, tuple)) and not value:
            return None
        return value

    @staticmethod
    def boolean(value: Any, true_values: Iterable[str] = ("1", "true", "yes", "on")) -> Any:
        if isinstance(value, bool) or value is None:
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            return value.strip().lower() in true_values
        return value
