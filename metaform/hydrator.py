"""
Hydrators convert between an object and a plain dict.

``extract(obj)`` returns the object's values keyed by field name and
``hydrate(data, obj)`` writes values back, returning the object.
"""
from typing import Any, Dict, Mapping, MutableMapping
import re

from metaform.exceptions import InvalidArgumentError

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class Hydrator:
    def extract(self, obj: Any) -> Dict[str, Any]:
        raise NotImplementedError

    def hydrate(self, data: Mapping[str, Any], obj: Any) -> Any:
        raise NotImplementedError


class ObjectPropertyHydrator(Hydrator):
    """Uses the object's public instance attributes."""

    def extract(self, obj: Any) -> Dict[str, Any]:
        try:
            attributes = vars(obj)
        except TypeError:
            raise InvalidArgumentError(
                f"{type(self).__name__}.extract expects an object with instance attributes; received {type(obj).__name__}"
            )
        return {name: value for name, value in attributes.items() if not name.startswith("_")}

    def hydrate(self, data: Mapping[str, Any], obj: Any) -> Any:
        for name, value in data.items():
            name = str(name)
            if name.startswith("_"):
                continue
            setattr(obj, name, value)
        return obj


class ClassMethodsHydrator(Hydrator):
    """
    Uses getter and setter methods.

    ``get_x()``, ``is_x()`` and ``has_x()`` are extracted as ``x``;
    ``set_x(value)`` is called on hydration when it exists.
    """

    _getter_prefixes = ("get_", "is_", "has_")

    def __init__(self, underscore_separated_keys: bool = True):
        self.underscore_separated_keys = underscore_separated_keys

    def _key(self, name: str) -> str:
        if self.underscore_separated_keys:
            return name
        head, *rest = name.split("_")
        return head + "".join(part.title() for part in rest)

    def _attribute(self, key: str) -> str:
        if self.underscore_separated_keys:
            return key
        return _CAMEL_BOUNDARY.sub("_", key).lower()

    def extract(self, obj: Any) -> Dict[str, Any]:
        values = {}
        for attribute in dir(obj):
            prefix = next((p for p in self._getter_prefixes if attribute.startswith(p)), None)
            if prefix is None:
                continue
            method = getattr(obj, attribute)
            if not callable(method):
                continue
            try:
                value = method()
            except TypeError:
                # Getter needs arguments
                continue
            values[self._key(attribute[len(prefix):])] = value
        return values

    def hydrate(self, data: Mapping[str, Any], obj: Any) -> Any:
        for key, value in data.items():
            setter = getattr(obj, f"set_{self._attribute(str(key))}", None)
            if callable(setter):
                setter(value)
        return obj


class ArraySerializableHydrator(Hydrator):
    """Uses ``get_array_copy()`` and ``exchange_array()`` / ``populate()``."""

    def extract(self, obj: Any) -> Dict[str, Any]:
        if not callable(getattr(obj, "get_array_copy", None)):
            raise InvalidArgumentError(
                f"{type(self).__name__}.extract expects the object to implement get_array_copy()"
            )
        return dict(obj.get_array_copy())

    def hydrate(self, data: Mapping[str, Any], obj: Any) -> Any:
        replacement = dict(data)
        if callable(getattr(obj, "get_array_copy", None)):
            replacement = {**obj.get_array_copy(), **replacement}

        if callable(getattr(obj, "exchange_array", None)):
            obj.exchange_array(replacement)
        elif callable(getattr(obj, "populate", None)):
            obj.populate(replacement)
        else:
            raise InvalidArgumentError(
                f"{type(self).__name__}.hydrate expects the object to implement exchange_array() or populate()"
            )
        return obj


class MappingHydrator(Hydrator):
    """Uses item access on dicts and other mutable mappings."""

    def extract(self, obj: Any) -> Dict[str, Any]:
        if not isinstance(obj, Mapping):
            raise InvalidArgumentError(f"{type(self).__name__}.extract expects a mapping; received {type(obj).__name__}")
        return dict(obj)

    def hydrate(self, data: Mapping[str, Any], obj: Any) -> Any:
        if not isinstance(obj, MutableMapping):
            raise InvalidArgumentError(f"{type(self).__name__}.hydrate expects a mutable mapping; received {type(obj).__name__}")
        obj.update(data)
        return obj


def default_hydrator_for(obj: Any) -> Hydrator:
    if isinstance(obj, Mapping):
        return MappingHydrator()
    if callable(getattr(obj, "get_array_copy", None)):
        return ArraySerializableHydrator()
    return ObjectPropertyHydrator()
