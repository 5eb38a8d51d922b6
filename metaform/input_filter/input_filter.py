import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from metaform.exceptions import InputFilterError
from metaform.input_filter.input import Input
from metaform.utils.data import as_indexed

logger = logging.getLogger(__name__)

# Passed to set_validation_group to validate every input
VALIDATE_ALL = "INPUT_FILTER_ALL"

GroupType = Optional[Union[Dict[Any, Any], List[Any], str]]


def normalize_validation_group(group: Any) -> Optional[Dict[Any, Any]]:
    """
    Normalizes a validation group into a nested dict.

    ``["a", "b"]`` becomes ``{"a": True, "b": True}`` and nested lists are
    converted the same way. ``None`` and VALIDATE_ALL mean "everything".
    """
    if group is None or (isinstance(group, str) and group == VALIDATE_ALL):
        return None
    if isinstance(group, Mapping):
        normalized = {}
        for key, value in group.items():
            if isinstance(value, (Mapping, list, tuple, set)):
                normalized[key] = normalize_validation_group(value)
            else:
                normalized[key] = value if value is not None else True
        return normalized
    if isinstance(group, (list, tuple, set)):
        normalized = {}
        for item in group:
            if isinstance(item, Mapping):
                normalized.update(normalize_validation_group(item))
            else:
                normalized[item] = True
        return normalized
    if isinstance(group, str):
        return {group: True}
    raise InputFilterError(f"Validation group must be a dict, a list of names or VALIDATE_ALL; received {type(group).__name__}")


class InputFilter:
    """
    Hierarchical container of inputs and nested input filters.

    Data is set as a (nested) mapping; each input receives the value found
    under its name and each nested filter receives the sub-mapping under its
    name. Validation may be restricted to a validation group.
    """

    def __init__(self):
        self._inputs: Dict[str, Union[Input, 'InputFilter']] = {}
        self._data: Optional[Dict[Any, Any]] = None
        self._validation_group: Optional[Dict[Any, Any]] = None
        self._valid_inputs: Dict[str, Any] = {}
        self._invalid_inputs: Dict[str, Any] = {}
        self._factory = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} inputs={list(self._inputs)}>"

    def __len__(self) -> int:
        return len(self._inputs)

    def __iter__(self) -> Iterator[str]:
        return iter(self._inputs)

    def __contains__(self, name: Any) -> bool:
        return self.has(name)

    # -- Factory ---
    def get_factory(self):
        if self._factory is None:
            from metaform.input_filter.factory import InputFilterFactory
            self._factory = InputFilterFactory()
        return self._factory

    def set_factory(self, factory) -> 'InputFilter':
        self._factory = factory
        return self

    # -- Composition ---
    def add(self, input_or_filter: Union[Input, 'InputFilter', Dict[str, Any]], name: Optional[str] = None) -> 'InputFilter':
        """
        Adds an input or a nested input filter.

        Specification dicts are turned into inputs (or filters) by the
        factory. Adding an input under a name already holding an input
        merges the new one into the original.
        """
        if isinstance(input_or_filter, Mapping):
            input_or_filter = self.get_factory().create_input_or_filter(input_or_filter, name)

        if not isinstance(input_or_filter, (Input, InputFilter)):
            raise InputFilterError(
                f"{type(self).__name__}.add expects an Input, an InputFilter or a specification dict; "
                f"received {type(input_or_filter).__name__}"
            )

        if name is None:
            if isinstance(input_or_filter, Input):
                name = input_or_filter.name
            if name is None:
                raise InputFilterError("Cannot add an input filter without a name")
        name = str(name)

        original = self._inputs.get(name)
        if isinstance(original, Input) and isinstance(input_or_filter, Input):
            original.merge(input_or_filter)
            return self

        if isinstance(input_or_filter, Input) and input_or_filter.name is None:
            input_or_filter.name = name
        self._inputs[name] = input_or_filter
        return self

    def replace(self, input_or_filter: Union[Input, 'InputFilter'], name: str) -> 'InputFilter':
        name = str(name)
        if name not in self._inputs:
            raise InputFilterError(f"Input '{name}' cannot be replaced: no input exists with that name")
        self._inputs[name] = input_or_filter
        return self

    def get(self, name: str) -> Union[Input, 'InputFilter']:
        name = str(name)
        if name not in self._inputs:
            raise InputFilterError(f"No input found matching '{name}'")
        return self._inputs[name]

    def has(self, name: Any) -> bool:
        return str(name) in self._inputs

    def remove(self, name: str) -> 'InputFilter':
        self._inputs.pop(str(name), None)
        return self

    def get_inputs(self) -> Dict[str, Union[Input, 'InputFilter']]:
        return dict(self._inputs)

    # -- Data ---
    def set_data(self, data: Mapping) -> 'InputFilter':
        if not isinstance(data, Mapping):
            raise InputFilterError(
                f"{type(self).__name__}.set_data expects a mapping; received {type(data).__name__}"
            )
        self._data = dict(data)
        self._populate()
        return self

    def get_data(self) -> Optional[Dict[Any, Any]]:
        return self._data

    def _lookup(self, name: str) -> Any:
        # Submitted keys may be ints (collection indices) while input names are strings
        if name in self._data:
            return True, self._data[name]
        for key, value in self._data.items():
            if str(key) == name:
                return True, value
        return False, None

    def _populate(self) -> None:
        for name, item in self._inputs.items():
            exists, value = self._lookup(name)

            if isinstance(item, InputFilter):
                if not exists or not isinstance(value, (Mapping, list, tuple)):
                    value = {}
                if not isinstance(item, CollectionInputFilter):
                    value = as_indexed(value)
                item.set_data(value)
                continue

            if not exists or value is None:
                item.reset_value()
                continue
            item.set_value(value)

    def get_unknown(self) -> Dict[Any, Any]:
        if self._data is None:
            raise InputFilterError(f"{type(self).__name__}.get_unknown: no data present")
        return {key: value for key, value in self._data.items() if not self.has(key)}

    def has_unknown(self) -> bool:
        return bool(self.get_unknown())

    # -- Validation group ---
    def set_validation_group(self, group: GroupType) -> 'InputFilter':
        normalized = normalize_validation_group(group)
        if normalized is None:
            self._validation_group = None
            for item in self._inputs.values():
                if isinstance(item, InputFilter):
                    item.set_validation_group(VALIDATE_ALL)
            return self

        accepted = {}
        for key, value in normalized.items():
            if not self.has(key):
                logger.debug("Validation group key '%s' does not match an input; ignoring", key)
                continue
            item = self.get(key)
            if isinstance(item, InputFilter):
                item.set_validation_group(value if isinstance(value, Mapping) else VALIDATE_ALL)
            accepted[str(key)] = value
        self._validation_group = accepted
        return self

    def get_validation_group(self) -> Optional[Dict[Any, Any]]:
        return self._validation_group

    def _validation_names(self) -> List[str]:
        if self._validation_group is None:
            return list(self._inputs)
        return [name for name in self._validation_group if name in self._inputs]

    # -- Validation ---
    def is_valid(self, context: Optional[Dict[str, Any]] = None) -> bool:
        if self._data is None:
            raise InputFilterError(
                f"{type(self).__name__}.is_valid: no data present to validate; call set_data first"
            )

        self._valid_inputs = {}
        self._invalid_inputs = {}
        valid = True
        input_context = context if context is not None else self._data

        for name in self._validation_names():
            item = self._inputs[name]
            if isinstance(item, InputFilter):
                if item.is_valid():
                    self._valid_inputs[name] = item
                else:
                    self._invalid_inputs[name] = item
                    valid = False
                continue

            if item.is_valid(input_context):
                self._valid_inputs[name] = item
                continue

            self._invalid_inputs[name] = item
            valid = False
            if item.break_on_failure:
                return False

        return valid

    def get_valid_input(self) -> Dict[str, Any]:
        return dict(self._valid_inputs)

    def get_invalid_input(self) -> Dict[str, Any]:
        return dict(self._invalid_inputs)

    def get_messages(self) -> Dict[Any, Any]:
        messages: Dict[Any, Any] = {}
        for name, item in self._invalid_inputs.items():
            item_messages = item.get_messages()
            if item_messages:
                messages[name] = item_messages
        return messages

    def get_values(self) -> Dict[Any, Any]:
        values: Dict[Any, Any] = {}
        for name in self._validation_names():
            values[name] = self._inputs[name].get_values() if isinstance(self._inputs[name], InputFilter) \
                else self._inputs[name].get_value()
        return values

    def get_raw_values(self) -> Dict[Any, Any]:
        values: Dict[Any, Any] = {}
        for name in self._validation_names():
            item = self._inputs[name]
            values[name] = item.get_raw_values() if isinstance(item, InputFilter) else item.get_raw_value()
        return values

    def get_value(self, name: str) -> Any:
        item = self.get(name)
        return item.get_values() if isinstance(item, InputFilter) else item.get_value()

    def get_raw_value(self, name: str) -> Any:
        item = self.get(name)
        return item.get_raw_values() if isinstance(item, InputFilter) else item.get_raw_value()


class CollectionInputFilter(InputFilter):
    """
    Applies one input filter repeatedly over a dynamically sized set of items.

    Data is a mapping (or list) of index -> item data; each item is validated
    by the composed filter. Values and messages are keyed by index.
    """

    not_empty_message = "Value is required and can't be empty"
    count_message = "The collection contains fewer items than required"

    def __init__(self, input_filter: Optional[InputFilter] = None):
        super().__init__()
        self._input_filter = input_filter
        self._count: Optional[int] = None
        self.is_required = False
        self._collection_values: Dict[Any, Any] = {}
        self._collection_raw_values: Dict[Any, Any] = {}
        self._collection_messages: Dict[Any, Any] = {}

    def set_input_filter(self, input_filter: Union[InputFilter, Dict[str, Any]]) -> 'CollectionInputFilter':
        if isinstance(input_filter, Mapping):
            input_filter = self.get_factory().create_input_filter(input_filter)
        if not isinstance(input_filter, InputFilter):
            raise InputFilterError(
                f"{type(self).__name__}.set_input_filter expects an InputFilter or a specification dict; "
                f"received {type(input_filter).__name__}"
            )
        self._input_filter = input_filter
        return self

    def get_input_filter(self) -> InputFilter:
        if self._input_filter is None:
            self._input_filter = InputFilter()
            self._input_filter.set_factory(self.get_factory())
        return self._input_filter

    def set_count(self, count: Optional[int]) -> 'CollectionInputFilter':
        self._count = None if count is None else max(int(count), 0)
        return self

    def get_count(self) -> int:
        if self._count is None:
            return len(self._data or {})
        return self._count

    def set_required(self, required: bool) -> 'CollectionInputFilter':
        self.is_required = bool(required)
        return self

    def set_data(self, data: Any) -> 'CollectionInputFilter':
        indexed = as_indexed(data)
        if indexed is None:
            raise InputFilterError(
                f"{type(self).__name__}.set_data expects a mapping or a list; received {type(data).__name__}"
            )
        self._data = {
            key: dict(item) if isinstance(item, Mapping) else {}
            for key, item in indexed.items()
        }
        self.clear_values()
        return self

    def clear_values(self) -> None:
        self._collection_values = {}
        self._collection_raw_values = {}
        self._collection_messages = {}

    def set_validation_group(self, group: GroupType) -> 'CollectionInputFilter':
        self._validation_group = normalize_validation_group(group)
        return self

    def is_valid(self, context: Optional[Dict[str, Any]] = None) -> bool:
        if self._data is None:
            raise InputFilterError(
                f"{type(self).__name__}.is_valid: no data present to validate; call set_data first"
            )

        input_filter = self.get_input_filter()
        valid = True
        self.clear_values()
        self._valid_inputs = {}
        self._invalid_inputs = {}

        if self.get_count() < 1 and self.is_required:
            self._collection_messages["is_empty"] = [self.not_empty_message]
            valid = False

        if len(self._data) < self.get_count():
            self._collection_messages.setdefault("count", []).append(self.count_message)
            valid = False

        for key, item_data in self._data.items():
            input_filter.set_data(item_data)
            if self._validation_group is not None:
                item_group = self._validation_group.get(key, self._validation_group.get(str(key), VALIDATE_ALL))
                input_filter.set_validation_group(item_group if isinstance(item_group, Mapping) else VALIDATE_ALL)

            if input_filter.is_valid():
                self._valid_inputs[key] = input_filter.get_valid_input()
            else:
                valid = False
                self._collection_messages[key] = input_filter.get_messages()
                self._invalid_inputs[key] = input_filter.get_invalid_input()

            self._collection_values[key] = input_filter.get_values()
            self._collection_raw_values[key] = input_filter.get_raw_values()

        input_filter.set_validation_group(VALIDATE_ALL)
        logger.debug("Validated %d collection item(s): %s", len(self._data), "valid" if valid else "invalid")
        return valid

    def get_values(self) -> Dict[Any, Any]:
        return dict(self._collection_values)

    def get_raw_values(self) -> Dict[Any, Any]:
        return dict(self._collection_raw_values)

    def get_messages(self) -> Dict[Any, Any]:
        return dict(self._collection_messages)
