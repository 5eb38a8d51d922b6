from typing import Any, Dict, List, Mapping, Optional
from copy import copy, deepcopy

from metaform.exceptions import InvalidArgumentError


class Element:
    """
    A leaf node of a form: name, value, attributes and options.
    """

    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        self.attributes: Dict[str, Any] = {}
        self.options: Dict[str, Any] = {}
        self.label: Optional[str] = None
        self.label_attributes: Dict[str, Any] = {}
        self._messages: List[str] = []
        self._value: Any = None
        self._key: Optional[str] = None

        if name is not None:
            self.set_name(name)
        if options:
            self.set_options(options)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.get_name()!r}>"

    # -- Name ---
    def set_name(self, name: str) -> 'Element':
        self.attributes["name"] = str(name)
        self._key = str(name)
        return self

    def get_name(self) -> Optional[str]:
        return self.attributes.get("name")

    @property
    def name(self) -> Optional[str]:
        return self.get_name()

    @property
    def key(self) -> Optional[str]:
        """The name the element was given, before any wrapping by its parents."""
        return self._key

    def wrap_name(self, prefix: str) -> 'Element':
        """Namespaces the rendered name as ``prefix[name]``; the key is kept."""
        self.attributes["name"] = f"{prefix}[{self.get_name()}]"
        return self

    # -- Options ---
    def set_options(self, options: Mapping[str, Any]) -> 'Element':
        if not isinstance(options, Mapping):
            raise InvalidArgumentError(
                f"{type(self).__name__}.set_options expects a mapping; received {type(options).__name__}"
            )

        if "label" in options:
            self.label = options["label"]
        if "label_attributes" in options:
            self.label_attributes = dict(options["label_attributes"])

        self.options.update(options)
        return self

    def set_option(self, key: str, value: Any) -> 'Element':
        return self.set_options({key: value})

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    # -- Attributes ---
    def set_attribute(self, key: str, value: Any) -> 'Element':
        if key == "value":
            self.set_value(value)
            return self
        self.attributes[key] = value
        return self

    def set_attributes(self, attributes: Mapping[str, Any]) -> 'Element':
        for key, value in attributes.items():
            self.set_attribute(key, value)
        return self

    def get_attribute(self, key: str, default: Any = None) -> Any:
        if key == "value":
            return self.get_value()
        return self.attributes.get(key, default)

    def has_attribute(self, key: str) -> bool:
        return key in self.attributes

    # -- Value ---
    def set_value(self, value: Any) -> 'Element':
        self._value = value
        return self

    def get_value(self) -> Any:
        return self._value

    @property
    def value(self) -> Any:
        return self.get_value()

    # -- Messages ---
    def set_messages(self, messages: Any) -> 'Element':
        if isinstance(messages, str):
            messages = [messages]
        elif isinstance(messages, Mapping):
            messages = list(messages.values())
        self._messages = list(messages or [])
        return self

    def get_messages(self) -> List[str]:
        return list(self._messages)

    def clear_messages(self) -> None:
        self._messages = []

    # -- Copying ---
    def clone(self) -> 'Element':
        cloned = copy(self)
        cloned.attributes = deepcopy(self.attributes)
        cloned.options = dict(self.options)
        cloned.label_attributes = dict(self.label_attributes)
        cloned._messages = []
        cloned._value = deepcopy(self._value)
        return cloned
