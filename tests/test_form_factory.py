import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

import pytest

from metaform.exceptions import InvalidArgumentError
from metaform.form import Collection, Email, Fieldset, Form, FormFactory, Text
from metaform.hydrator import ClassMethodsHydrator, MappingHydrator


def test_create_form_from_specification():
    factory = FormFactory()
    form = factory.create({
        "type": "form",
        "name": "contact",
        "attributes": {"class": "stacked"},
        "options": {"label": "Contact us"},
        "elements": [
            {"spec": {"type": "text", "name": "subject"}},
            {"spec": {"type": "email", "name": "email"}, "flags": {"priority": 10}},
        ],
        "input_filter": {"subject": {"required": True}},
    })

    assert isinstance(form, Form)
    assert form.get_attribute("class") == "stacked"
    assert form.get_attribute("method") == "POST"
    assert form.label == "Contact us"
    assert [child.key for child in form] == ["email", "subject"]
    assert isinstance(form.get("email"), Email)
    assert form.get_form_factory() is factory

    form.set_data({"email": "ann@example.com"})
    assert not form.is_valid()
    assert list(form.get_messages()) == ["subject"]


def test_create_nested_fieldsets_and_collections():
    factory = FormFactory()
    form = factory.create({
        "type": "form",
        "name": "order",
        "fieldsets": [
            {
                "type": "fieldset",
                "name": "shipping",
                "hydrator": "mapping",
                "object": {},
                "elements": [{"type": "text", "name": "city"}],
            },
            {
                "type": "collection",
                "name": "items",
                "options": {
                    "count": 2,
                    "target_element": {"type": "fieldset", "elements": [{"type": "text", "name": "sku"}]},
                },
            },
        ],
    })

    shipping = form.get("shipping")
    assert isinstance(shipping, Fieldset)
    assert isinstance(shipping.get_hydrator(), MappingHydrator)
    assert shipping.get_object() == {}
    assert isinstance(form.get("items"), Collection)
    assert form.get("items").get_count() == 2

    form.prepare()
    assert len(form.get("items")) == 2
    assert form.get("items").get("1").get("sku").get_name() == "items[1][sku]"


def test_hydrator_and_object_classes():
    class Settings:
        pass

    fieldset = FormFactory().create({
        "type": "fieldset",
        "name": "settings",
        "hydrator": ClassMethodsHydrator,
        "object": Settings,
    })
    assert isinstance(fieldset.get_hydrator(), ClassMethodsHydrator)
    assert isinstance(fieldset.get_object(), Settings)


def test_registered_types_and_named_input_filters():
    class Slug(Text):
        pass

    factory = FormFactory()
    factory.register_type("slug", Slug)
    factory.get_input_filter_factory().register_input_filter("slugged", {"slug": {"required": True}})

    form = factory.create({
        "type": "form",
        "name": "page",
        "elements": [{"type": "slug", "name": "slug"}],
        "input_filter": "slugged",
        "validation_group": ["slug"],
    })
    assert isinstance(form.get("slug"), Slug)
    assert form.get_validation_group() == {"slug": True}
    form.set_data({"slug": ""})
    assert not form.is_valid()


def test_unknown_types_are_rejected():
    factory = FormFactory()
    with pytest.raises(InvalidArgumentError):
        factory.create({"type": "slider", "name": "volume"})
    with pytest.raises(InvalidArgumentError):
        factory.create({"type": "fieldset", "name": "f", "hydrator": "reflection"})
    with pytest.raises(InvalidArgumentError):
        factory.register_type("thing", dict)
