from typing import Any, Dict, List, Mapping, Optional

from metaform.form.element import Element


class Text(Element):
    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        super().__init__(name, options)
        self.attributes["type"] = "text"


class Hidden(Element):
    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        super().__init__(name, options)
        self.attributes["type"] = "hidden"


class Email(Element):
    """A trimmed, required email address."""

    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        super().__init__(name, options)
        self.attributes["type"] = "email"

    def get_input_specification(self) -> Dict[str, Any]:
        return {
            "name": self.get_name(),
            "required": True,
            "filters": ["string_trim"],
            "validators": ["email"],
        }


class Number(Element):
    """A required number, bounded by the ``min`` and ``max`` attributes when set."""

    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        super().__init__(name, options)
        self.attributes["type"] = "number"

    def get_input_specification(self) -> Dict[str, Any]:
        validators: List[Any] = ["number"]
        if self.get_attribute("min") is not None:
            validators.append({"name": "min_value", "options": {"min": float(self.get_attribute("min"))}})
        if self.get_attribute("max") is not None:
            validators.append({"name": "max_value", "options": {"max": float(self.get_attribute("max"))}})

        return {
            "name": self.get_name(),
            "required": True,
            "filters": ["string_trim"],
            "validators": validators,
        }


class Checkbox(Element):
    """
    A checkbox whose value is either the checked or the unchecked value.

    Options: ``checked_value`` (default "1"), ``unchecked_value`` (default "0"),
    ``use_hidden_element`` (default True).
    """

    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        self.checked_value = "1"
        self.unchecked_value = "0"
        self.use_hidden_element = True
        super().__init__(name, options)
        self.attributes["type"] = "checkbox"
        self._value = self.unchecked_value

    def set_options(self, options: Mapping[str, Any]) -> 'Checkbox':
        super().set_options(options)
        if "checked_value" in options:
            self.checked_value = str(options["checked_value"])
        if "unchecked_value" in options:
            self.unchecked_value = str(options["unchecked_value"])
        if "use_hidden_element" in options:
            self.use_hidden_element = bool(options["use_hidden_element"])
        return self

    def set_value(self, value: Any) -> 'Checkbox':
        if isinstance(value, bool):
            value = self.checked_value if value else self.unchecked_value
        self._value = value
        return self

    def is_checked(self) -> bool:
        return str(self._value) == self.checked_value

    def get_input_specification(self) -> Dict[str, Any]:
        return {
            "name": self.get_name(),
            "required": True,
            "validators": [
                {"name": "in_array", "options": {"haystack": [self.checked_value, self.unchecked_value]}},
            ],
        }


class Select(Element):
    """
    A choice among ``value_options``.

    ``value_options`` is either a mapping of value -> label or a list of
    values. With ``empty_option`` set the selection becomes optional.
    """

    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        self.value_options: Dict[Any, Any] = {}
        self.empty_option: Optional[str] = None
        self.disable_in_array_validator = False
        super().__init__(name, options)

    def set_options(self, options: Mapping[str, Any]) -> 'Select':
        super().set_options(options)
        if "value_options" in options:
            self.set_value_options(options["value_options"])
        if "empty_option" in options:
            self.empty_option = options["empty_option"]
        if "disable_in_array_validator" in options:
            self.disable_in_array_validator = bool(options["disable_in_array_validator"])
        return self

    def set_value_options(self, value_options: Any) -> 'Select':
        if isinstance(value_options, Mapping):
            self.value_options = dict(value_options)
        else:
            self.value_options = {value: value for value in value_options}
        return self

    def get_input_specification(self) -> Dict[str, Any]:
        spec: Dict[str, Any] = {
            "name": self.get_name(),
            "required": self.empty_option is None,
            "validators": [],
        }
        if not self.disable_in_array_validator:
            spec["validators"].append(
                {"name": "in_array", "options": {"haystack": list(self.value_options)}}
            )
        return spec
