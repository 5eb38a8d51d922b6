import logging
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from metaform.exceptions import DomainError, InvalidArgumentError
from metaform.form.collection import Collection
from metaform.form.element import Element
from metaform.form.fieldset import Fieldset
from metaform.form.interfaces import (
    BindOnValidate,
    ElementPrepareAware,
    InputFilterAware,
    InputFilterProvider,
    InputProvider,
    Values,
)
from metaform.hydrator import Hydrator
from metaform.input_filter import (
    VALIDATE_ALL,
    CollectionInputFilter,
    Input,
    InputFilter,
    normalize_validation_group,
)
from metaform.utils.data import as_indexed, index_keys, iterator_to_dict

logger = logging.getLogger(__name__)


class FilterState(Enum):
    """Lifecycle of the form's input filter."""
    NO_FILTER = "no_filter"
    FILTER_BUILT = "filter_built"
    DEFAULTS_ATTACHED = "defaults_attached"


class Form(Fieldset):
    """
    Binds submitted data to a tree of elements and validates it.

    Lifecycle: ``set_data`` (or ``bind``) seeds state, ``is_valid`` runs the
    input filter once per data / validation group generation, and
    ``get_data`` or ``bind_values`` read the outcome. The input filter is
    built lazily and completed with defaults declared by the elements.

    Objects are bound either to the whole form or, when a base fieldset is
    designated, through that fieldset only.
    """

    def __init__(self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        self._bind_as = Values.NORMALIZED
        self._bind_on_validate = BindOnValidate.ON_VALIDATE
        self._base_fieldset: Optional[Fieldset] = None
        self._data: Optional[Dict[Any, Any]] = None
        self._filter: Optional[InputFilter] = None
        self._filter_state = FilterState.NO_FILTER
        self._filter_object: Any = None
        self._use_input_filter_defaults = True
        self._prefer_form_input_filter = True
        self._has_set_prefer_form_input_filter = False
        self._has_validated = False
        self._is_valid = False
        self._is_prepared = False
        self._wrap_elements = False
        self._validation_group: Optional[Dict[Any, Any]] = None
        self._prepared_validation_group: Optional[Dict[Any, Any]] = None
        super().__init__(name, options)
        self.attributes.setdefault("method", "POST")

    def set_options(self, options: Mapping[str, Any]) -> 'Form':
        """
        Accepts the fieldset options plus ``prefer_form_input_filter``,
        ``use_input_filter_defaults`` and ``wrap_elements``.
        """
        super().set_options(options)
        if options.get("prefer_form_input_filter") is not None:
            self.set_prefer_form_input_filter(options["prefer_form_input_filter"])
        if options.get("use_input_filter_defaults") is not None:
            self.set_use_input_filter_defaults(options["use_input_filter_defaults"])
        if options.get("wrap_elements") is not None:
            self.set_wrap_elements(options["wrap_elements"])
        return self

    def add(self, element_or_fieldset: Union[Element, Mapping[str, Any]], flags: Optional[Mapping[str, Any]] = None) -> 'Form':
        if isinstance(element_or_fieldset, Mapping):
            element_or_fieldset = self.get_form_factory().create(element_or_fieldset)

        super().add(element_or_fieldset, flags)

        if isinstance(element_or_fieldset, Fieldset) and element_or_fieldset.use_as_base_fieldset:
            self._base_fieldset = element_or_fieldset
        return self

    # -- Preparation ---
    def prepare(self) -> 'Form':
        """
        Builds the input filter and prepares the element tree. Idempotent.
        """
        if self._is_prepared:
            return self

        self.get_input_filter()

        if self._wrap_elements:
            self.prepare_element(self)
        else:
            for child in self:
                if isinstance(child, Form):
                    child.prepare()
                elif isinstance(child, ElementPrepareAware):
                    child.prepare_element(self)

        self._is_prepared = True
        return self

    @property
    def is_prepared(self) -> bool:
        return self._is_prepared

    def prepare_element(self, form: 'Form') -> None:
        name = self.get_name()
        for child in self:
            if isinstance(form, Form) and form.wrap_elements() and name:
                child.wrap_name(name)
            if isinstance(child, ElementPrepareAware):
                child.prepare_element(form)

    def set_wrap_elements(self, wrap_elements: bool) -> 'Form':
        self._wrap_elements = bool(wrap_elements)
        return self

    def wrap_elements(self) -> bool:
        return self._wrap_elements

    # -- Data ---
    def set_data(self, data: Union[Mapping[Any, Any], Iterable]) -> 'Form':
        """
        Sets the data to validate and pushes it into the elements.
        """
        if isinstance(data, (str, bytes)) or not isinstance(data, (Mapping, Iterable)):
            raise InvalidArgumentError(
                f"{type(self).__name__}.set_data expects a mapping or an iterable of pairs; received {type(data).__name__}"
            )

        data = iterator_to_dict(data)
        self._has_validated = False
        self._data = data
        self.populate_values(data)
        return self

    def populate_values(self, data: Union[Mapping[Any, Any], Iterable], only_base: bool = False) -> None:
        if not isinstance(data, Mapping):
            data = iterator_to_dict(data)

        if only_base and self._base_fieldset is not None:
            name = self._base_fieldset.key
            for key, value in data.items():
                if str(key) == name:
                    self._base_fieldset.populate_values(value)
                    break
            return

        super().populate_values(data)

    def extract(self) -> Dict[str, Any]:
        if self._base_fieldset is not None:
            return {self._base_fieldset.key: self._base_fieldset.extract()}
        return super().extract()

    # -- Binding ---
    def bind(self, obj: Any, flags: Values = Values.NORMALIZED) -> 'Form':
        """
        Binds an object to the form and populates the elements from it.

        ``flags`` selects which values are hydrated back into the object
        after validation: Values.NORMALIZED (filtered) or Values.RAW.
        """
        if flags not in (Values.NORMALIZED, Values.RAW):
            raise InvalidArgumentError(
                f"{type(self).__name__}.bind expects the flags argument to be one of "
                f"Values.NORMALIZED or Values.RAW; received {flags!r}"
            )

        if self._base_fieldset is not None:
            self._base_fieldset.set_object(obj)

        self._bind_as = flags
        self.set_object(obj)

        data = self.extract()
        self.populate_values(data, only_base=True)
        return self

    def set_hydrator(self, hydrator: Hydrator) -> 'Form':
        if self._base_fieldset is not None:
            self._base_fieldset.set_hydrator(hydrator)
        return super().set_hydrator(hydrator)

    def bind_values(self, values: Optional[Mapping[Any, Any]] = None, validation_group: Optional[Mapping[Any, Any]] = None) -> None:
        """
        Hydrates validated values into the bound object.

        Does nothing without a bound object (or a base fieldset allowing
        value binding), or when validation did not succeed. A form that has not
        validated its current data validates it first, after taking ``values``
        as the new data when given.
        """
        if self._object is None:
            if self._base_fieldset is None or not self._base_fieldset.allow_value_binding():
                return

        if not self._has_validated:
            if values:
                self.set_data(values)
            if not self.is_valid():
                return
        elif not self._is_valid:
            return

        input_filter = self.get_input_filter()
        if self._bind_as is Values.RAW:
            data = input_filter.get_raw_values()
        else:
            data = input_filter.get_values()

        data = self.prepare_bind_data(data, self._data or {})
        group = validation_group if validation_group is not None else self._prepared_validation_group
        if group is None:
            group = self._validation_group

        if self._base_fieldset is not None:
            name = self._base_fieldset.key
            base_group = group.get(name) if group else None
            self._object = self._base_fieldset.bind_values(
                data.get(name) or {},
                base_group if isinstance(base_group, Mapping) else None,
            )
        else:
            self._object = super().bind_values(data, group)

    def prepare_bind_data(self, values: Mapping[Any, Any], match: Mapping[Any, Any]) -> Dict[Any, Any]:
        """
        Keeps only the values whose keys were actually submitted.
        """
        submitted = {str(key): value for key, value in match.items()}
        data: Dict[Any, Any] = {}

        for name, value in values.items():
            if str(name) not in submitted:
                continue

            matched = submitted[str(name)]
            matched_group = as_indexed(matched) if isinstance(value, Mapping) else None
            if isinstance(value, Mapping) and matched_group is not None:
                data[name] = self.prepare_bind_data(value, matched_group)
            else:
                data[name] = value
        return data

    def set_bind_on_validate(self, flag: BindOnValidate) -> 'Form':
        if flag not in (BindOnValidate.ON_VALIDATE, BindOnValidate.MANUAL):
            raise InvalidArgumentError(
                f"{type(self).__name__}.set_bind_on_validate expects the flag to be one of "
                f"BindOnValidate.ON_VALIDATE or BindOnValidate.MANUAL; received {flag!r}"
            )
        self._bind_on_validate = flag
        return self

    def bind_on_validate(self) -> bool:
        return self._bind_on_validate is BindOnValidate.ON_VALIDATE

    def set_base_fieldset(self, base_fieldset: Fieldset) -> 'Form':
        if not isinstance(base_fieldset, Fieldset):
            raise InvalidArgumentError(
                f"{type(self).__name__}.set_base_fieldset expects a Fieldset; received {type(base_fieldset).__name__}"
            )
        self._base_fieldset = base_fieldset
        return self

    def get_base_fieldset(self) -> Optional[Fieldset]:
        return self._base_fieldset

    # -- Validation ---
    def has_validated(self) -> bool:
        return self._has_validated

    def is_valid(self) -> bool:
        """
        Validates the current data, or the bound object's values when no data was set.

        The result is cached until the data, the validation group or the
        input filter changes.
        """
        if self._has_validated:
            return self._is_valid

        self._is_valid = False

        if self._data is None and self._object is None:
            raise DomainError(f"{type(self).__name__}.is_valid is unable to validate as there is no data currently set")

        if self._data is None:
            data = self.extract()
            self.populate_values(data, only_base=True)
            self._data = iterator_to_dict(data)

        input_filter = self.get_input_filter()
        input_filter.set_data(self._data)
        input_filter.set_validation_group(VALIDATE_ALL)

        self._prepared_validation_group = None
        if self._validation_group is not None:
            self._prepared_validation_group = self.prepare_validation_group(self, self._data, self._validation_group)
            input_filter.set_validation_group(self._prepared_validation_group)

        result = input_filter.is_valid()
        self._is_valid = result
        self._has_validated = True
        logger.debug("Form '%s' validated: %s", self.key, "valid" if result else "invalid")

        if result and self.bind_on_validate():
            self.bind_values()

        self.clear_messages()
        if not result:
            self.set_messages(input_filter.get_messages())

        return result

    def get_data(self, flag: Values = Values.NORMALIZED) -> Any:
        """
        Returns the validated data: the bound object if any (unless
        Values.AS_ARRAY is requested), otherwise the filtered or raw values.
        """
        if not self._has_validated:
            raise DomainError(f"{type(self).__name__}.get_data cannot return data as validation has not yet occurred")

        if flag is not Values.AS_ARRAY and self._object is not None:
            return self._object

        input_filter = self.get_input_filter()
        if flag is Values.RAW:
            return input_filter.get_raw_values()
        return input_filter.get_values()

    # -- Validation group ---
    def set_validation_group(self, group: Any) -> 'Form':
        """
        Restricts validation to a subset of the fields.

        Accepts a nested dict (``{"user": {"email": True}}``) or lists of
        names (``["name", {"user": ["email"]}]``).
        """
        self._has_validated = False
        self._validation_group = normalize_validation_group(group)
        return self

    def set_validate_all(self) -> None:
        self._has_validated = False
        self._validation_group = None

    def get_validation_group(self) -> Optional[Dict[Any, Any]]:
        return self._validation_group

    def prepare_validation_group(self, fieldset: Fieldset, data: Mapping[Any, Any], group: Mapping[Any, Any]) -> Dict[Any, Any]:
        """
        Expands a validation group against the submitted data.

        Collection entries are re-keyed to the item indices actually present
        in the data, each receiving the declared per-item group; a collection
        with neither data nor items is dropped. Returns a new dict.
        """
        submitted = {str(key): value for key, value in (data or {}).items()}
        prepared: Dict[Any, Any] = {}

        for key, value in group.items():
            if not fieldset.has(key):
                prepared[key] = value
                continue

            child = fieldset.get(key)
            child_data = submitted.get(str(key))

            if isinstance(child, Collection):
                if child_data is None and child.get_count() == 0:
                    logger.debug("Dropping empty collection '%s' from the validation group", key)
                    continue
                value = {index: value for index in index_keys(child_data)}

            if child_data is None:
                child_data = {}

            if isinstance(child, Fieldset) and isinstance(value, Mapping):
                value = self.prepare_validation_group(child, as_indexed(child_data) or {}, value)

            prepared[key] = value

        return prepared

    # -- Input filter ---
    def _install_input_filter(self, input_filter: InputFilter) -> None:
        if input_filter is not self._filter:
            self._has_validated = False
        self._filter = input_filter
        self._filter_state = FilterState.FILTER_BUILT

    def _new_input_filter(self) -> InputFilter:
        input_filter = InputFilter()
        input_filter.set_factory(self.get_form_factory().get_input_filter_factory())
        return input_filter

    def set_input_filter(self, input_filter: InputFilter) -> 'Form':
        if not isinstance(input_filter, InputFilter):
            raise InvalidArgumentError(
                f"{type(self).__name__}.set_input_filter expects an InputFilter; received {type(input_filter).__name__}"
            )
        self._has_validated = False
        self._install_input_filter(input_filter)

        if not self._has_set_prefer_form_input_filter:
            self._prefer_form_input_filter = False
        return self

    def set_input_filter_by_name(self, name: str) -> None:
        input_filter = self.get_form_factory().get_input_filter_factory().get_input_filter(name)
        self.set_input_filter(input_filter)

    def get_input_filter(self) -> InputFilter:
        """
        Returns the input filter, building it and attaching element defaults on first use.
        """
        if isinstance(self._object, InputFilterAware) and self._filter_object is not self._object:
            self._filter_object = self._object
            if self._base_fieldset is None:
                self._install_input_filter(self._object.get_input_filter())
            else:
                name = self._base_fieldset.key
                if self._filter is None or not self._filter.has(name):
                    input_filter = self._new_input_filter()
                    input_filter.add(self._object.get_input_filter(), name)
                    self._install_input_filter(input_filter)

        if self._filter is None:
            self._install_input_filter(self._new_input_filter())

        if self._filter_state is not FilterState.DEFAULTS_ATTACHED and self._use_input_filter_defaults:
            self.attach_input_filter_defaults(self._filter, self)
            self._filter_state = FilterState.DEFAULTS_ATTACHED

        return self._filter

    def set_use_input_filter_defaults(self, use_input_filter_defaults: bool) -> 'Form':
        self._use_input_filter_defaults = bool(use_input_filter_defaults)
        self._has_validated = False
        return self

    def use_input_filter_defaults(self) -> bool:
        return self._use_input_filter_defaults

    def set_prefer_form_input_filter(self, prefer_form_input_filter: bool) -> 'Form':
        self._prefer_form_input_filter = bool(prefer_form_input_filter)
        self._has_set_prefer_form_input_filter = True
        self._has_validated = False
        return self

    def get_prefer_form_input_filter(self) -> bool:
        return self._prefer_form_input_filter

    def attach_input_filter_defaults(self, input_filter: InputFilter, fieldset: Fieldset) -> None:
        """
        Completes an input filter with the defaults declared by a fieldset's elements.

        Recurses into nested fieldsets, creating their filters when missing.
        Collections get a CollectionInputFilter whose inner filter receives
        the defaults of the collection's target fieldset.
        """
        input_factory = self.get_form_factory().get_input_filter_factory()

        target = fieldset.get_target_element() if isinstance(fieldset, Collection) else None
        is_collection_filter = isinstance(input_filter, CollectionInputFilter)
        source = target if isinstance(target, Fieldset) and is_collection_filter else fieldset

        if not isinstance(fieldset, Collection) or not isinstance(target, Fieldset) or is_collection_filter:
            self._attach_element_defaults(input_filter, source.get_elements())

            if fieldset is self and isinstance(self, InputFilterProvider):
                for name, spec in self.get_input_filter_specification().items():
                    input_filter.add(input_factory.create_input_or_filter(spec, name), name)

        container = input_filter.get_input_filter() if is_collection_filter else input_filter

        for name, child in source.get_fieldsets().items():
            if isinstance(child, InputFilterProvider):
                if container.has(name):
                    continue

                child_filter = input_factory.create_input_filter(child.get_input_filter_specification())
                container.add(child_filter, name)
                self.attach_input_filter_defaults(child_filter, child)
                continue

            if not container.has(name):
                container.add(self._default_child_filter(child), name)

            child_filter = container.get(name)
            if not isinstance(child_filter, InputFilter):
                # An input was attached for the fieldset; nothing to recurse into
                continue

            self.attach_input_filter_defaults(child_filter, child)

        if is_collection_filter:
            self._add_inputs_to_collection_input_filter(input_filter)

    def _attach_element_defaults(self, input_filter: InputFilter, elements: Mapping[str, Element]) -> None:
        input_factory = self.get_form_factory().get_input_filter_factory()
        container = input_filter.get_input_filter() if isinstance(input_filter, CollectionInputFilter) else input_filter

        for name, element in elements.items():
            if self._prefer_form_input_filter and container.has(name):
                continue

            if not isinstance(element, InputProvider):
                if container.has(name):
                    continue
                container.add(input_factory.create_input({"name": name, "required": False}), name)
                continue

            spec = dict(element.get_input_specification())
            spec["name"] = name
            input = input_factory.create_input(spec)

            if container.has(name):
                existing = container.get(name)
                if isinstance(existing, Input):
                    input.merge(existing)
                    container.replace(input, name)
                continue

            container.add(input, name)

    def _default_child_filter(self, child: Fieldset) -> InputFilter:
        input_factory = self.get_form_factory().get_input_filter_factory()
        child_object = child.get_object()
        if child_object is not None and isinstance(child_object, InputFilterAware):
            return child_object.get_input_filter()

        target = child.get_target_element() if isinstance(child, Collection) else None
        # Fieldset targets are validated per item whether or not they declare a
        # specification; only element targets fall through to a plain filter
        if isinstance(target, Fieldset):
            collection_filter = CollectionInputFilter()
            collection_filter.set_factory(input_factory)
            if isinstance(target, InputFilterProvider) and target.get_input_filter_specification():
                collection_filter.set_input_filter(
                    input_factory.create_input_filter(target.get_input_filter_specification())
                )
            logger.debug("Created collection input filter for '%s'", child.key)
            return collection_filter

        input_filter = InputFilter()
        input_filter.set_factory(input_factory)
        return input_filter

    def _add_inputs_to_collection_input_filter(self, input_filter: CollectionInputFilter) -> CollectionInputFilter:
        inner = input_filter.get_input_filter()
        for name, input in input_filter.get_inputs().items():
            if not inner.has(name):
                inner.add(input, name)
        return input_filter
