import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from metaform.exceptions import InputFilterError
from metaform.input_filter.filters import Filter
from metaform.input_filter.input import Input
from metaform.input_filter.input_filter import CollectionInputFilter, InputFilter
from metaform.input_filter.validator import Validator

logger = logging.getLogger(__name__)

# "type" values of a specification dict that describe a nested input filter rather than an input
INPUT_FILTER_TYPES = ("input_filter", "collection")


def _message(options: Dict[str, Any]) -> Optional[str]:
    return options.get("message")


DEFAULT_FILTERS: Dict[str, Callable[[Dict[str, Any]], Callable[[Any], Any]]] = {
    "string_trim": lambda options: Filter.string_trim,
    "string_to_lower": lambda options: Filter.string_to_lower,
    "string_to_upper": lambda options: Filter.string_to_upper,
    "strip_tags": lambda options: Filter.strip_tags,
    "to_int": lambda options: Filter.to_int,
    "to_float": lambda options: Filter.to_float,
    "to_null": lambda options: Filter.to_null,
    "boolean": lambda options: (
        (lambda value: Filter.boolean(value, options["true_values"])) if "true_values" in options else Filter.boolean
    ),
}

DEFAULT_VALIDATORS: Dict[str, Callable[[Dict[str, Any]], Callable[..., Optional[str]]]] = {
    "not_empty": lambda options: (lambda value: Validator.not_empty(value, _message(options) or "Value is required and can't be empty")),
    "email": lambda options: (lambda value: Validator.email(value, _message(options))),
    "url": lambda options: (lambda value: Validator.url(value, _message(options))),
    "phone": lambda options: (lambda value: Validator.phone(value, options.get("pattern"), _message(options))),
    "uuid": lambda options: (lambda value: Validator.uuid(value, _message(options))),
    "digits": lambda options: (lambda value: Validator.digits(value, _message(options))),
    "number": lambda options: (lambda value: Validator.number(value, _message(options))),
    "regex": lambda options: Validator.regex(options["pattern"], _message(options)),
    "string_length": lambda options: Validator.string_length(options.get("min", 0), options.get("max"), _message(options)),
    "min_length": lambda options: Validator.min_length(options["length"], _message(options)),
    "max_length": lambda options: Validator.max_length(options["length"], _message(options)),
    "min_value": lambda options: Validator.min_value(options["min"], _message(options)),
    "max_value": lambda options: Validator.max_value(options["max"], _message(options)),
    "between": lambda options: Validator.between(options["min"], options["max"], _message(options)),
    "in_array": lambda options: Validator.in_array(options["haystack"], options.get("strict", False), _message(options)),
    "date_min": lambda options: Validator.date_min(options["min"], _message(options)),
    "date_max": lambda options: Validator.date_max(options["max"], _message(options)),
    "identical": lambda options: Validator.identical(options["token"], _message(options)),
    "callback": lambda options: Validator.custom(options["callback"]),
}


class InputFilterFactory:
    """
    Builds inputs and input filters from specification dicts.

    Input spec keys: ``name``, ``required``, ``allow_empty``,
    ``continue_if_empty``, ``break_on_failure``, ``error_message``,
    ``fallback_value``, ``filters`` and ``validators``. Filters and
    validators are callables, registered names, or
    ``{"name": ..., "options": {...}}`` dicts.

    Input filter specs map names to input specs or nested filter specs; a
    ``type`` of ``"collection"`` builds a CollectionInputFilter from its
    ``input_filter``, ``count`` and ``required`` keys.
    """

    def __init__(self):
        self.filters = dict(DEFAULT_FILTERS)
        self.validators = dict(DEFAULT_VALIDATORS)
        self._input_filters: Dict[str, Callable[[], InputFilter]] = {}

    # -- Registries ---
    def register_filter(self, name: str, builder: Callable[[Dict[str, Any]], Callable[[Any], Any]]) -> 'InputFilterFactory':
        self.filters[name] = builder
        return self

    def register_validator(self, name: str, builder: Callable[[Dict[str, Any]], Callable[..., Optional[str]]]) -> 'InputFilterFactory':
        self.validators[name] = builder
        return self

    def register_input_filter(self, name: str, builder: Union[Callable[[], InputFilter], Dict[str, Any]]) -> 'InputFilterFactory':
        """Registers a named input filter, either as a zero-argument builder or a spec dict."""
        if isinstance(builder, Mapping):
            spec = dict(builder)
            builder = lambda: self.create_input_filter(spec)
        self._input_filters[name] = builder
        return self

    def has_input_filter(self, name: str) -> bool:
        return name in self._input_filters

    def get_input_filter(self, name: str) -> InputFilter:
        if name not in self._input_filters:
            raise InputFilterError(f"No input filter registered under the name '{name}'")
        input_filter = self._input_filters[name]()
        if not isinstance(input_filter, InputFilter):
            raise InputFilterError(f"Input filter builder '{name}' did not return an InputFilter")
        logger.debug("Built named input filter '%s'", name)
        input_filter.set_factory(self)
        return input_filter

    # -- Resolution ---
    def _resolve(self, registry: Dict[str, Callable], entry: Any, kind: str) -> Callable:
        if callable(entry) and not isinstance(entry, Mapping):
            return entry

        if isinstance(entry, str):
            name, options = entry, {}
        elif isinstance(entry, Mapping) and "name" in entry:
            name, options = entry["name"], dict(entry.get("options") or {})
        else:
            raise InputFilterError(f"Invalid {kind} specification: {entry!r}")

        if callable(name):
            return name(**options) if options else name
        if name not in registry:
            raise InputFilterError(f"Unknown {kind} '{name}'")
        return registry[name](options)

    # -- Builders ---
    def create_input(self, spec: Union[Input, Mapping[str, Any]]) -> Input:
        if isinstance(spec, Input):
            return spec
        if not isinstance(spec, Mapping):
            raise InputFilterError(
                f"{type(self).__name__}.create_input expects a specification dict; received {type(spec).__name__}"
            )

        input = Input(spec.get("name"))
        for flag in ("required", "allow_empty", "continue_if_empty", "break_on_failure"):
            if flag in spec and spec[flag] is not None:
                setattr(input, flag, bool(spec[flag]))
        if spec.get("error_message") is not None:
            input.error_message = spec["error_message"]
        if "fallback_value" in spec:
            input.set_fallback_value(spec["fallback_value"])

        for entry in spec.get("filters") or []:
            input.add_filter(self._resolve(self.filters, entry, "filter"))
        for entry in spec.get("validators") or []:
            input.add_validator(self._resolve(self.validators, entry, "validator"))
        return input

    def create_input_filter(self, spec: Union[InputFilter, Mapping[str, Any]]) -> InputFilter:
        if isinstance(spec, InputFilter):
            return spec
        if not isinstance(spec, Mapping):
            raise InputFilterError(
                f"{type(self).__name__}.create_input_filter expects a specification dict; received {type(spec).__name__}"
            )

        if spec.get("type") == "collection":
            collection = CollectionInputFilter()
            collection.set_factory(self)
            if "input_filter" in spec:
                collection.set_input_filter(self.create_input_filter(spec["input_filter"]))
            if "count" in spec:
                collection.set_count(spec["count"])
            if "required" in spec:
                collection.set_required(spec["required"])
            return collection

        input_filter = InputFilter()
        input_filter.set_factory(self)
        for key, value in spec.items():
            if key == "type":
                continue
            input_filter.add(self.create_input_or_filter(value, key), key)
        return input_filter

    def create_input_or_filter(self, spec: Any, name: Optional[str] = None) -> Union[Input, InputFilter]:
        if isinstance(spec, (Input, InputFilter)):
            return spec
        if not isinstance(spec, Mapping):
            raise InputFilterError(f"Invalid input specification for '{name}': {spec!r}")

        if spec.get("type") in INPUT_FILTER_TYPES:
            return self.create_input_filter(spec)

        spec = dict(spec)
        if spec.get("name") is None and name is not None:
            spec["name"] = str(name)
        return self.create_input(spec)
