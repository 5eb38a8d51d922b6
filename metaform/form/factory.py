import logging
from typing import Any, Dict, Mapping, Optional, Union

from metaform.exceptions import InvalidArgumentError
from metaform.form.collection import Collection
from metaform.form.element import Element
from metaform.form.elements import Checkbox, Email, Hidden, Number, Select, Text
from metaform.form.fieldset import Fieldset
from metaform.form.form import Form
from metaform.hydrator import (
    ArraySerializableHydrator,
    ClassMethodsHydrator,
    Hydrator,
    MappingHydrator,
    ObjectPropertyHydrator,
)
from metaform.input_filter import InputFilter, InputFilterFactory

logger = logging.getLogger(__name__)

DEFAULT_TYPES: Dict[str, type] = {
    "element": Element,
    "text": Text,
    "hidden": Hidden,
    "email": Email,
    "number": Number,
    "checkbox": Checkbox,
    "select": Select,
    "fieldset": Fieldset,
    "collection": Collection,
    "form": Form,
}

HYDRATORS: Dict[str, type] = {
    "object_property": ObjectPropertyHydrator,
    "class_methods": ClassMethodsHydrator,
    "array_serializable": ArraySerializableHydrator,
    "mapping": MappingHydrator,
}


class FormFactory:
    """
    Builds elements, fieldsets and forms from specification dicts.

    Example::

        factory.create({
            "type": "form",
            "name": "contact",
            "elements": [
                {"spec": {"type": "email", "name": "email"}, "flags": {"priority": 10}},
                {"type": "text", "name": "subject"},
            ],
            "input_filter": {"subject": {"required": True}},
        })

    Recognized keys: ``type`` (registered name or Element subclass),
    ``name``, ``options``, ``attributes``; for fieldsets ``elements``,
    ``fieldsets``, ``hydrator`` and ``object``; for forms additionally
    ``input_filter`` and ``validation_group``.
    """

    def __init__(self, input_filter_factory: Optional[InputFilterFactory] = None):
        self.types: Dict[str, type] = dict(DEFAULT_TYPES)
        self._input_filter_factory = input_filter_factory

    def register_type(self, name: str, element_class: type) -> 'FormFactory':
        if not (isinstance(element_class, type) and issubclass(element_class, Element)):
            raise InvalidArgumentError(f"{type(self).__name__}.register_type expects an Element subclass for '{name}'")
        self.types[name] = element_class
        return self

    def get_input_filter_factory(self) -> InputFilterFactory:
        if self._input_filter_factory is None:
            self._input_filter_factory = InputFilterFactory()
        return self._input_filter_factory

    def set_input_filter_factory(self, input_filter_factory: InputFilterFactory) -> 'FormFactory':
        self._input_filter_factory = input_filter_factory
        return self

    def _resolve_type(self, element_type: Any) -> type:
        if isinstance(element_type, type) and issubclass(element_type, Element):
            return element_type
        if isinstance(element_type, str) and element_type in self.types:
            return self.types[element_type]
        raise InvalidArgumentError(f"{type(self).__name__}: unknown element type {element_type!r}")

    def create(self, spec: Mapping[str, Any]) -> Element:
        if not isinstance(spec, Mapping):
            raise InvalidArgumentError(
                f"{type(self).__name__}.create expects a specification dict; received {type(spec).__name__}"
            )

        element = self._resolve_type(spec.get("type", "element"))()
        if isinstance(element, Fieldset):
            element.set_form_factory(self)

        if spec.get("name") is not None:
            element.set_name(spec["name"])
        if spec.get("options"):
            element.set_options(spec["options"])
        if spec.get("attributes"):
            element.set_attributes(spec["attributes"])

        if isinstance(element, Fieldset):
            self._prepare_and_inject_elements(spec.get("elements") or [], element)
            self._prepare_and_inject_elements(spec.get("fieldsets") or [], element)
            if spec.get("hydrator") is not None:
                element.set_hydrator(self._create_hydrator(spec["hydrator"]))
            if spec.get("object") is not None:
                obj = spec["object"]
                element.set_object(obj() if isinstance(obj, type) else obj)

        if isinstance(element, Form):
            if spec.get("input_filter") is not None:
                self._prepare_and_inject_input_filter(spec["input_filter"], element)
            if spec.get("validation_group") is not None:
                element.set_validation_group(spec["validation_group"])

        logger.debug("Created %s '%s'", type(element).__name__, element.key)
        return element

    def _prepare_and_inject_elements(self, entries: Any, fieldset: Fieldset) -> None:
        if isinstance(entries, Mapping):
            entries = list(entries.values())

        for entry in entries:
            if isinstance(entry, Element):
                fieldset.add(entry)
                continue
            if not isinstance(entry, Mapping):
                raise InvalidArgumentError(f"Invalid child specification for '{fieldset.key}': {entry!r}")

            if "spec" in entry:
                fieldset.add(self.create(entry["spec"]), entry.get("flags"))
            else:
                fieldset.add(self.create(entry))

    def _create_hydrator(self, hydrator: Union[str, type, Hydrator]) -> Hydrator:
        if isinstance(hydrator, Hydrator):
            return hydrator
        if isinstance(hydrator, type) and issubclass(hydrator, Hydrator):
            return hydrator()
        if isinstance(hydrator, str) and hydrator in HYDRATORS:
            return HYDRATORS[hydrator]()
        raise InvalidArgumentError(f"{type(self).__name__}: unknown hydrator {hydrator!r}")

    def _prepare_and_inject_input_filter(self, spec: Union[str, Mapping[str, Any], InputFilter], form: Form) -> None:
        input_factory = self.get_input_filter_factory()
        if isinstance(spec, str):
            form.set_input_filter_by_name(spec)
            return
        form.set_input_filter(input_factory.create_input_filter(spec))
