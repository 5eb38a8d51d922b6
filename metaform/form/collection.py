import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from metaform.exceptions import DomainError, InvalidArgumentError
from metaform.form.element import Element
from metaform.form.fieldset import Fieldset
from metaform.utils.data import as_indexed

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_PLACEHOLDER = "__index__"


class Collection(Fieldset):
    """
    A repeatable group of identical items, instantiated from a target element.

    Items are clones of ``target_element`` named by their index. ``count``
    is the number of items created on preparation; submitted data may add
    or remove items when ``allow_add`` / ``allow_remove`` permit it.
    """

    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        self.target_element: Optional[Element] = None
        self.count = 1
        self.allow_add = True
        self.allow_remove = True
        self.should_create_template = False
        self.template_placeholder = DEFAULT_TEMPLATE_PLACEHOLDER
        self.template_element: Optional[Element] = None
        self.create_new_objects = False
        self._last_child_index = -1
        self._should_create_children_on_prepare = True
        super().__init__(name, options)

    def set_options(self, options: Mapping[str, Any]) -> 'Collection':
        super().set_options(options)
        if "target_element" in options:
            self.set_target_element(options["target_element"])
        if "count" in options:
            self.set_count(options["count"])
        if "allow_add" in options:
            self.allow_add = bool(options["allow_add"])
        if "allow_remove" in options:
            self.allow_remove = bool(options["allow_remove"])
        if "should_create_template" in options:
            self.should_create_template = bool(options["should_create_template"])
        if "template_placeholder" in options:
            self.template_placeholder = str(options["template_placeholder"])
        if "create_new_objects" in options:
            self.create_new_objects = bool(options["create_new_objects"])
        return self

    def set_count(self, count: int) -> 'Collection':
        count = int(count)
        self.count = count if count > 0 else 0
        return self

    def get_count(self) -> int:
        return self.count

    def set_target_element(self, element_or_fieldset: Union[Element, Mapping[str, Any]]) -> 'Collection':
        if isinstance(element_or_fieldset, Mapping):
            element_or_fieldset = self.get_form_factory().create(element_or_fieldset)

        if not isinstance(element_or_fieldset, Element):
            raise InvalidArgumentError(
                f"{type(self).__name__}.set_target_element requires an Element or a specification dict; "
                f"received {type(element_or_fieldset).__name__}"
            )
        self.target_element = element_or_fieldset
        return self

    def get_target_element(self) -> Optional[Element]:
        return self.target_element

    # -- Items ---
    def _create_new_target_element_instance(self) -> Element:
        return self.target_element.clone()

    def _add_new_target_element_instance(self, name: Any) -> Element:
        self._should_create_children_on_prepare = False

        item = self._create_new_target_element_instance()
        item.set_name(str(name))
        self.add(item)

        if not self.allow_add and len(self) > self.count:
            raise DomainError(
                f"There are more elements than specified in the collection ({self.count}). "
                "Either set the allow_add option to true, or re-submit the form."
            )
        return item

    def populate_values(self, data: Any) -> None:
        """
        Resizes the collection to the submitted items and populates each one.
        """
        indexed = as_indexed(data)
        if indexed is None:
            raise InvalidArgumentError(
                f"{type(self).__name__}.populate_values expects a mapping or a list; received {type(data).__name__}"
            )

        if not self.allow_remove and len(indexed) < self.count:
            raise DomainError(
                f"There are fewer elements than specified in the collection ({self.count}). "
                "Either set the allow_remove option to true, or re-submit the form."
            )

        submitted = {str(key): value for key, value in indexed.items()}

        to_remove = [name for name in self._children if name not in submitted]
        if to_remove and not self.allow_remove:
            raise DomainError(
                f"Elements have been removed from the collection '{self.key}' but the allow_remove option is not true."
            )
        for name in to_remove:
            self.remove(name)

        for name, value in submitted.items():
            if self.has(name):
                item = self.get(name)
            elif self.target_element is not None:
                item = self._add_new_target_element_instance(name)
                if name.isdigit() and int(name) > self._last_child_index:
                    self._last_child_index = int(name)
            else:
                continue

            if isinstance(item, Fieldset):
                if isinstance(value, Mapping):
                    item.populate_values(value)
            else:
                item.set_value(value)

        logger.debug("Collection '%s' populated with %d item(s)", self.key, len(self))

    # -- Object binding ---
    def set_object(self, obj: Any) -> 'Collection':
        if obj is None:
            self._object = None
            return self
        if isinstance(obj, (str, bytes)) or not isinstance(obj, (Mapping, Iterable)):
            raise InvalidArgumentError(
                f"{type(self).__name__}.set_object expects an iterable of items; received {type(obj).__name__}"
            )

        if not isinstance(obj, (Mapping, list, tuple)):
            obj = list(obj)
        self._object = obj
        size = len(obj)
        if size > self.count:
            self.count = size
        return self

    def allow_object_binding(self, obj: Any) -> bool:
        return obj is not None and not isinstance(obj, (str, bytes)) and isinstance(obj, (Mapping, Iterable))

    def allow_value_binding(self) -> bool:
        return True

    def extract(self) -> Dict[Any, Any]:
        """Extracts every item of the bound iterable through a clone of the target."""
        if self._object is None:
            return {}

        values: Dict[Any, Any] = {}
        for key, item in as_indexed(self._object).items():
            if self._hydrator is not None:
                values[key] = self._hydrator.extract(item)
                continue

            if isinstance(self.target_element, Fieldset):
                if not self.target_element.allow_object_binding(item):
                    continue
                target = self.target_element.clone()
                target.set_object(item)
                values[key] = target.extract()
                if not self.create_new_objects and self.has(key):
                    self.get(key).set_object(item)
                continue

            values[key] = item

        return values

    def bind_values(self, values: Mapping[Any, Any], validation_group: Optional[Mapping[Any, Any]] = None) -> List[Any]:
        """
        Binds each submitted item and returns the bound items as a list.

        The list follows submission order and drops the item keys, so sparse
        indices such as 0, 2, 5 come back as positions 0, 1, 2.
        """
        collection: List[Any] = []
        group = validation_group or {}

        for key, value in (as_indexed(values) or {}).items():
            if not self.has(key):
                continue
            item = self.get(key)
            if isinstance(item, Fieldset) and item.allow_value_binding():
                if self.create_new_objects:
                    item.set_object(type(item.get_object())())
                item_group = group.get(key, group.get(str(key)))
                collection.append(item.bind_values(value, item_group if isinstance(item_group, Mapping) else None))
            else:
                collection.append(value)

        return collection

    # -- Preparation ---
    def prepare_fieldset(self) -> None:
        """Creates the first ``count`` items from the target element."""
        if not self._should_create_children_on_prepare:
            return
        if self.target_element is not None and self.count > 0:
            while self.count > self._last_child_index + 1:
                self._last_child_index += 1
                self._add_new_target_element_instance(self._last_child_index)

    def get_template_element(self) -> Optional[Element]:
        if self.template_element is None and self.target_element is not None:
            self.template_element = self._create_new_target_element_instance()
            self.template_element.set_name(self.template_placeholder)
        return self.template_element

    def prepare_element(self, form: Any) -> None:
        self.prepare_fieldset()

        if self.should_create_template:
            template = self.get_template_element()
            if template is not None:
                template.wrap_name(self.get_name())
                if isinstance(template, Fieldset):
                    template.prepare_element(form)

        super().prepare_element(form)

    def clone(self) -> 'Collection':
        cloned = super().clone()
        cloned.target_element = self.target_element.clone() if self.target_element is not None else None
        cloned.template_element = None
        return cloned
