from typing import Any, Callable, Iterable, Optional, Union, Dict
import re
import datetime
from uuid import UUID as PyUUID

ValidatorFunc = Callable[..., Optional[str]]


class Validator:
    """
    Provides a set of built-in validation functions.

    Every validator returns an error message when the value fails, or None.
    Validators flagged with ``uses_context`` are also handed the data of the
    input filter they run in.
    """

    @staticmethod
    def required(value: Any, error_message: str = "Value is required and can't be empty", allow_none: bool = False) -> Optional[str]:
        """Checks if a value is required, potentially allowing None."""
        if allow_none and value is None:
            return None
        return Validator.not_empty(value, error_message, allow_none)

    @staticmethod
    def not_empty(value: Any, error_message: str = "Value is required and can't be empty", allow_none: bool = False) -> Optional[str]:
        """Checks if a value is not empty, potentially allowing None."""
        if value is None:
            return None if allow_none else error_message

        if isinstance(value, str):
            if not value.strip():
                return error_message
        elif isinstance(value, (list, dict, tuple, set)):
            if not value:
                return error_message
        # 0 and False are valid values

        return None

    @staticmethod
    def min_length(length: int, error_message: str = None) -> ValidatorFunc:
        """Creates a validation function that checks for minimum length."""
        def validate(value: str) -> Optional[str]:
            if value is not None and len(str(value)) < length:
                return error_message or f"The input is less than {length} characters long"
            return None
        return validate

    @staticmethod
    def max_length(length: int, error_message: str = None) -> ValidatorFunc:
        """Creates a validation function that checks for maximum length."""
        def validate(value: str) -> Optional[str]:
            if value is not None and len(str(value)) > length:
                return error_message or f"The input is more than {length} characters long"
            return None
        return validate

    @staticmethod
    def string_length(min: int = 0, max: Optional[int] = None, error_message: str = None) -> ValidatorFunc:
        checks = [Validator.min_length(min, error_message)]
        if max is not None:
            checks.append(Validator.max_length(max, error_message))

        def validate(value: str) -> Optional[str]:
            for check in checks:
                error = check(value)
                if error:
                    return error
            return None
        return validate

    @staticmethod
    def email(value: str, error_message: str = None) -> Optional[str]:
        """Checks if a value is a valid email address."""
        if value is None or value == "":
            return None

        email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
        regex_validator = Validator.regex(email_pattern, error_message or "The input is not a valid email address")
        return regex_validator(value)

    @staticmethod
    def url(value: str, error_message: str = None) -> Optional[str]:
        """Checks if a value is a valid URL."""
        if value is None or value == "":
            return None

        url_pattern = r"^https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
        regex_validator = Validator.regex(url_pattern, error_message or "The input does not appear to be a valid Uri")
        return regex_validator(value)

    @staticmethod
    def phone(value: str, pattern: str = None, error_message: str = None) -> Optional[str]:
        if value is None or value == "":
            return None

        phone_pattern = pattern or r"^\+?[0-9]{10,15}$"
        regex_validator = Validator.regex(phone_pattern, error_message or "The input does not match a phone number format")
        return regex_validator(value)

    @staticmethod
    def uuid(value: str, error_message: str = None) -> Optional[str]:
        if value is None or value == "":
            return None

        try:
            PyUUID(str(value))
            return None
        except (ValueError, AttributeError, TypeError):
            return error_message or "Invalid UUID format"

    @staticmethod
    def regex(pattern: str, error_message: str = None) -> ValidatorFunc:
        """Creates a validation function that checks against a regex pattern."""
        compiled_pattern = re.compile(pattern)
        def validate(value: str) -> Optional[str]:
            if value is not None and not compiled_pattern.fullmatch(str(value)):
                return error_message or f"The input does not match against pattern '{pattern}'"
            return None
        return validate

    @staticmethod
    def digits(value: Any, error_message: str = None) -> Optional[str]:
        if value is None or value == "":
            return None
        if not str(value).isdigit():
            return error_message or "The input must contain only digits"
        return None

    @staticmethod
    def number(value: Any, error_message: str = None) -> Optional[str]:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            return error_message or "The input is not a valid number"
        try:
            float(value)
        except (ValueError, TypeError):
            return error_message or "The input is not a valid number"
        return None

    @staticmethod
    def min_value(min_val: Union[int, float], error_message: str = None) -> ValidatorFunc:
        """Creates a validation function that checks for minimum value."""
        def validate(value: Union[int, float]) -> Optional[str]:
            if value is not None and value != "":
                try:
                    num_value = float(value)
                    if num_value < min_val:
                        return error_message or f"The input is not greater than or equal to '{min_val}'"
                except (ValueError, TypeError):
                    return "The input is not a valid number"
            return None
        return validate

    @staticmethod
    def max_value(max_val: Union[int, float], error_message: str = None) -> ValidatorFunc:
        """Creates a validation function that checks for maximum value."""
        def validate(value: Union[int, float]) -> Optional[str]:
            if value is not None and value != "":
                try:
                    num_value = float(value)
                    if num_value > max_val:
                        return error_message or f"The input is not less than or equal to '{max_val}'"
                except (ValueError, TypeError):
                    return "The input is not a valid number"
            return None
        return validate

    @staticmethod
    def between(min: Union[int, float], max: Union[int, float], error_message: str = None) -> ValidatorFunc:
        lower = Validator.min_value(min, error_message)
        upper = Validator.max_value(max, error_message)

        def validate(value: Union[int, float]) -> Optional[str]:
            return lower(value) or upper(value)
        return validate

    @staticmethod
    def in_array(haystack: Iterable[Any], strict: bool = False, error_message: str = None) -> ValidatorFunc:
        """Creates a validation function that checks the value is one of the haystack entries."""
        options = list(haystack)

        def validate(value: Any) -> Optional[str]:
            values = value if isinstance(value, (list, tuple, set)) else [value]
            for item in values:
                if strict:
                    found = item in options
                else:
                    found = str(item) in [str(option) for option in options]
                if not found:
                    return error_message or "The input was not found in the haystack"
            return None
        return validate

    @staticmethod
    def date_min(min_date: Union[str, datetime.date], error_message: str = None) -> ValidatorFunc:
        """Creates a validation function that checks for minimum date."""
        if isinstance(min_date, str):
            try:
                min_date = datetime.date.fromisoformat(min_date)
            except ValueError:
                raise ValueError(f"Invalid date format: {min_date}. Use ISO format (YYYY-MM-DD).")

        def validate(value: Union[str, datetime.date]) -> Optional[str]:
            if value is None or value == "":
                return None

            try:
                date_value = value
                if isinstance(value, str):
                    date_value = datetime.date.fromisoformat(value)

                if date_value < min_date:
                    return error_message or f"Date must be on or after {min_date.isoformat()}."
                return None
            except ValueError:
                return "Invalid date format. Use ISO format (YYYY-MM-DD)."

        return validate

    @staticmethod
    def date_max(max_date: Union[str, datetime.date], error_message: str = None) -> ValidatorFunc:
        """Creates a validation function that checks for maximum date."""
        if isinstance(max_date, str):
            try:
                max_date = datetime.date.fromisoformat(max_date)
            except ValueError:
                raise ValueError(f"Invalid date format: {max_date}. Use ISO format (YYYY-MM-DD).")

        def validate(value: Union[str, datetime.date]) -> Optional[str]:
            if value is None or value == "":
                return None

            try:
                date_value = value
                if isinstance(value, str):
                    date_value = datetime.date.fromisoformat(value)

                if date_value > max_date:
                    return error_message or f"Date must be on or before {max_date.isoformat()}."
                return None
            except ValueError:
                return "Invalid date format. Use ISO format (YYYY-MM-DD)."

        return validate

    @staticmethod
    def identical(token: str, error_message: str = None) -> ValidatorFunc:
        """
        Ensures the value matches the value of another field of the same input filter.
        """
        def validate(value: Any, context: Optional[Dict[str, Any]] = None) -> Optional[str]:
            context = context or {}
            if token not in context:
                return "No token was provided to match against"
            if value != context.get(token):
                return error_message or "The two given tokens do not match"
            return None
        validate.uses_context = True
        return validate

    @staticmethod
    def custom(validation_func: Callable[[Any], Optional[str]]) -> ValidatorFunc:
        """Allows adding custom validation functions."""
        return validation_func
