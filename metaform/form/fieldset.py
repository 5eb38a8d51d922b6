import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union
from copy import copy

from metaform.exceptions import InvalidArgumentError
from metaform.form.element import Element
from metaform.hydrator import Hydrator, default_hydrator_for

logger = logging.getLogger(__name__)

_SCALARS = (str, bytes, int, float, bool, list, tuple, set)


class Fieldset(Element):
    """
    An ordered, named container of elements and nested fieldsets.

    A fieldset can be bound to an object: ``extract`` reads the object's
    values through the hydrator (recursing into child fieldsets), and
    ``bind_values`` writes validated values back.
    """

    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        self._children: Dict[str, Element] = {}
        self._priorities: Dict[str, int] = {}
        self._object: Any = None
        self._hydrator: Optional[Hydrator] = None
        self._own_messages: Dict[Any, Any] = {}
        self._factory = None
        self.use_as_base_fieldset = False
        self.allowed_object_binding_class: Optional[type] = None
        super().__init__(name, options)

    def set_options(self, options: Mapping[str, Any]) -> 'Fieldset':
        super().set_options(options)
        if "use_as_base_fieldset" in options:
            self.use_as_base_fieldset = bool(options["use_as_base_fieldset"])
        if "allowed_object_binding_class" in options:
            self.allowed_object_binding_class = options["allowed_object_binding_class"]
        return self

    # -- Factory ---
    def get_form_factory(self):
        if self._factory is None:
            from metaform.form.factory import FormFactory
            self._factory = FormFactory()
        return self._factory

    def set_form_factory(self, factory) -> 'Fieldset':
        self._factory = factory
        return self

    # -- Children ---
    def add(self, element_or_fieldset: Union[Element, Mapping[str, Any]], flags: Optional[Mapping[str, Any]] = None) -> 'Fieldset':
        """
        Adds an element or fieldset.

        Specification dicts are built by the form factory first. ``flags``
        may carry ``name`` (the key to register under) and ``priority``
        (higher values iterate first).
        """
        flags = dict(flags or {})
        if isinstance(element_or_fieldset, Mapping):
            element_or_fieldset = self.get_form_factory().create(element_or_fieldset)

        if not isinstance(element_or_fieldset, Element):
            raise InvalidArgumentError(
                f"{type(self).__name__}.add requires an Element or a specification dict; "
                f"received {type(element_or_fieldset).__name__}"
            )

        if flags.get("name") is not None:
            element_or_fieldset.set_name(flags["name"])

        name = element_or_fieldset.key
        if not name:
            raise InvalidArgumentError(
                f"{type(self).__name__}.add: element or fieldset provided is not named, and no name provided in flags"
            )

        self._children[name] = element_or_fieldset
        self._priorities[name] = int(flags.get("priority", 0))
        return self

    def has(self, name: Any) -> bool:
        return str(name) in self._children

    def get(self, name: Any) -> Element:
        name = str(name)
        if name not in self._children:
            raise InvalidArgumentError(f"No element by the name of [{name}] found in {type(self).__name__} '{self.key}'")
        return self._children[name]

    def remove(self, name: Any) -> 'Fieldset':
        name = str(name)
        self._children.pop(name, None)
        self._priorities.pop(name, None)
        return self

    def set_priority(self, name: Any, priority: int) -> 'Fieldset':
        self.get(name)
        self._priorities[str(name)] = int(priority)
        return self

    def _ordered_names(self) -> List[str]:
        # sorted() is stable, so equal priorities keep insertion order
        return sorted(self._children, key=lambda name: -self._priorities.get(name, 0))

    def items(self) -> List[tuple]:
        return [(name, self._children[name]) for name in self._ordered_names()]

    def __iter__(self) -> Iterator[Element]:
        return iter([self._children[name] for name in self._ordered_names()])

    def __len__(self) -> int:
        return len(self._children)

    def __contains__(self, name: Any) -> bool:
        return self.has(name)

    def __getitem__(self, name: Any) -> Element:
        return self.get(name)

    def get_elements(self) -> Dict[str, Element]:
        return {name: child for name, child in self.items() if not isinstance(child, Fieldset)}

    def get_fieldsets(self) -> Dict[str, 'Fieldset']:
        return {name: child for name, child in self.items() if isinstance(child, Fieldset)}

    # -- Messages ---
    def set_messages(self, messages: Any) -> 'Fieldset':
        """
        Distributes messages to the children they belong to.

        Keys that match no child are kept on the fieldset itself.
        """
        if not isinstance(messages, Mapping):
            raise InvalidArgumentError(
                f"{type(self).__name__}.set_messages expects a mapping of names to messages; received {type(messages).__name__}"
            )

        self._own_messages = {}
        for key, message_set in messages.items():
            if self.has(key):
                self.get(key).set_messages(message_set)
            else:
                self._own_messages[key] = message_set
        return self

    def get_messages(self, element_name: Optional[str] = None) -> Dict[Any, Any]:
        if element_name is not None:
            return self.get(element_name).get_messages()

        messages: Dict[Any, Any] = dict(self._own_messages)
        for name, child in self.items():
            child_messages = child.get_messages()
            if child_messages:
                messages[name] = child_messages
        return messages

    def clear_messages(self) -> None:
        self._own_messages = {}
        for child in self._children.values():
            child.clear_messages()

    # -- Population ---
    def populate_values(self, data: Mapping[Any, Any]) -> None:
        """Recursively pushes submitted values into the matching elements."""
        from metaform.form.collection import Collection

        if not isinstance(data, Mapping):
            raise InvalidArgumentError(
                f"{type(self).__name__}.populate_values expects a mapping; received {type(data).__name__}"
            )
        data = {str(key): value for key, value in data.items()}

        for name, child in self.items():
            value_exists = name in data

            if isinstance(child, Collection):
                if value_exists and isinstance(data[name], (Mapping, list, tuple)):
                    child.populate_values(data[name])
                elif child.allow_remove:
                    # Nothing submitted: drop all items
                    child.populate_values({})
                continue

            if isinstance(child, Fieldset):
                if value_exists and isinstance(data[name], Mapping):
                    child.populate_values(data[name])
                continue

            if value_exists:
                child.set_value(data[name])

    # -- Object binding ---
    def set_object(self, obj: Any) -> 'Fieldset':
        self._object = obj
        return self

    def get_object(self) -> Any:
        return self._object

    def set_hydrator(self, hydrator: Hydrator) -> 'Fieldset':
        self._hydrator = hydrator
        return self

    def get_hydrator(self) -> Hydrator:
        if self._hydrator is not None:
            return self._hydrator
        return default_hydrator_for(self._object)

    def allow_object_binding(self, obj: Any) -> bool:
        if obj is None or isinstance(obj, _SCALARS):
            return False
        if self.allowed_object_binding_class is not None:
            return isinstance(obj, self.allowed_object_binding_class)
        if self._object is not None:
            return isinstance(obj, type(self._object))
        return True

    def allow_value_binding(self) -> bool:
        return self._object is not None

    def extract(self) -> Dict[str, Any]:
        """
        Extracts the bound object's values, recursing into child fieldsets.

        Nested objects found under a child fieldset's name are bound to that
        fieldset and replaced by their own extracted values.
        """
        from metaform.form.collection import Collection

        if self._object is None:
            return {}

        values = self.get_hydrator().extract(self._object)
        if not isinstance(values, Mapping):
            return {}
        values = dict(values)

        for name, fieldset in self.get_fieldsets().items():
            if name not in values or values[name] is None:
                continue
            nested = values[name]

            if isinstance(fieldset, Collection):
                if fieldset.allow_object_binding(nested):
                    fieldset.set_object(nested)
                    values[name] = fieldset.extract()
                continue

            if fieldset.allow_object_binding(nested):
                fieldset.set_object(nested)
                values[name] = fieldset.extract()

        return values

    def bind_values(self, values: Mapping[Any, Any], validation_group: Optional[Mapping[Any, Any]] = None) -> Any:
        """
        Hydrates validated values into the bound object.

        Only keys present in ``values`` (and in ``validation_group`` when one
        is given) are bound; collections are always bound, possibly empty.
        """
        from metaform.form.collection import Collection

        values = {str(key): value for key, value in (values or {}).items()}
        group = {str(key): value for key, value in validation_group.items()} if validation_group else None
        hydratable: Dict[str, Any] = {}

        for name, child in self.items():
            if group is not None and name not in group:
                continue

            if name not in values:
                if not isinstance(child, Collection):
                    continue
                values[name] = {}

            value = values[name]
            if isinstance(child, Fieldset) and child.allow_value_binding():
                child_group = group.get(name) if group is not None else None
                value = child.bind_values(value or {}, child_group if isinstance(child_group, Mapping) else None)

            hydratable[name] = value

        if hydratable and self._object is not None:
            logger.debug("Hydrating %s into %s '%s'", sorted(hydratable), type(self).__name__, self.key)
            self._object = self.get_hydrator().hydrate(hydratable, self._object)

        return self._object

    # -- Preparation ---
    def prepare_element(self, form: Any) -> None:
        """Namespaces child names under this fieldset's name, recursively."""
        name = self.get_name()
        for child in self:
            child.wrap_name(name)
            if isinstance(child, Fieldset):
                child.prepare_element(form)

    # -- Copying ---
    def clone(self) -> 'Fieldset':
        cloned = super().clone()
        cloned._children = {name: child.clone() for name, child in self._children.items()}
        cloned._priorities = dict(self._priorities)
        cloned._own_messages = {}
        cloned._object = copy(self._object) if self._object is not None else None
        return cloned
