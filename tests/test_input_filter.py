import sys
import os
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from metaform.exceptions import InputFilterError
from metaform.input_filter import (
    VALIDATE_ALL,
    CollectionInputFilter,
    Filter,
    Input,
    InputFilter,
    InputFilterFactory,
    Validator,
    normalize_validation_group,
)

REQUIRED = "Value is required and can't be empty"


class TestInput(unittest.TestCase):
    def test_missing_required_value_fails(self):
        input = Input("name")
        self.assertFalse(input.is_valid())
        self.assertEqual(input.get_messages(), [REQUIRED])

    def test_missing_optional_value_passes(self):
        input = Input("name")
        input.required = False
        self.assertTrue(input.is_valid())

    def test_empty_string_is_rejected_when_required(self):
        input = Input("name")
        input.set_value("   ")
        self.assertFalse(input.is_valid())

    def test_allow_empty_skips_validators(self):
        input = Input("email")
        input.allow_empty = True
        input.add_validator(Validator.min_length(3))
        input.set_value("")
        self.assertTrue(input.is_valid())

    def test_continue_if_empty_runs_validators(self):
        input = Input("email")
        input.required = False
        input.continue_if_empty = True
        input.add_validator(lambda value: "Must not be blank" if not value else None)
        input.set_value("")
        self.assertFalse(input.is_valid())
        self.assertEqual(input.get_messages(), ["Must not be blank"])

    def test_filters_apply_to_value_not_raw_value(self):
        input = Input("email")
        input.add_filter(Filter.string_trim)
        input.add_filter(Filter.string_to_lower)
        input.set_value("  Ann@Example.COM ")
        self.assertEqual(input.get_value(), "ann@example.com")
        self.assertEqual(input.get_raw_value(), "  Ann@Example.COM ")

    def test_break_on_failure_stops_the_chain(self):
        input = Input("code")
        input.break_on_failure = True
        input.add_validator(Validator.min_length(5))
        input.add_validator(Validator.digits)
        input.set_value("ab")
        self.assertFalse(input.is_valid())
        self.assertEqual(len(input.get_messages()), 1)

    def test_error_message_replaces_messages(self):
        input = Input("code")
        input.error_message = "Bad code"
        input.add_validator(Validator.min_length(5))
        input.add_validator(Validator.digits)
        input.set_value("ab")
        self.assertFalse(input.is_valid())
        self.assertEqual(input.get_messages(), ["Bad code"])

    def test_fallback_value_replaces_missing_and_invalid_values(self):
        input = Input("page")
        input.set_fallback_value("1")
        self.assertTrue(input.is_valid())
        self.assertEqual(input.get_value(), "1")

        input.set_value("x")
        input.add_validator(Validator.digits)
        self.assertTrue(input.is_valid())
        self.assertEqual(input.get_value(), "1")

    def test_context_validator_receives_filter_data(self):
        input = Input("confirm")
        input.add_validator(Validator.identical("password"))
        input.set_value("secret")
        self.assertTrue(input.is_valid({"password": "secret"}))
        self.assertFalse(input.is_valid({"password": "other"}))

    def test_merge_takes_flags_and_appends_chains(self):
        original = Input("email")
        original.add_validator(Validator.email)
        other = Input("email")
        other.required = False
        other.add_filter(Filter.string_trim)

        original.merge(other)
        self.assertFalse(original.required)
        self.assertEqual(original.filters, [Filter.string_trim])
        self.assertEqual(original.validators, [Validator.email])


def _contact_filter():
    input_filter = InputFilter()
    input_filter.add({"name": "name", "required": True, "filters": ["string_trim"]})
    input_filter.add({"name": "email", "required": True, "validators": ["email"]})
    input_filter.add({"name": "phone", "required": False, "validators": ["phone"]})
    return input_filter


def test_input_filter_validates_all_inputs():
    input_filter = _contact_filter()
    input_filter.set_data({"name": " Ann ", "email": "ann@example.com"})
    assert input_filter.is_valid()
    assert input_filter.get_values() == {"name": "Ann", "email": "ann@example.com", "phone": None}
    assert input_filter.get_raw_values()["name"] == " Ann "


def test_input_filter_reports_only_invalid_inputs():
    input_filter = _contact_filter()
    input_filter.set_data({"name": "Ann", "email": "nope"})
    assert not input_filter.is_valid()
    assert list(input_filter.get_messages()) == ["email"]
    assert set(input_filter.get_invalid_input()) == {"email"}
    assert "name" in input_filter.get_valid_input()


def test_input_filter_validation_group_limits_inputs():
    input_filter = _contact_filter()
    input_filter.set_data({"name": "Ann"})
    input_filter.set_validation_group(["name", "unknown"])
    assert input_filter.get_validation_group() == {"name": True}
    assert input_filter.is_valid()
    assert input_filter.get_values() == {"name": "Ann"}

    input_filter.set_validation_group(VALIDATE_ALL)
    assert not input_filter.is_valid()


def test_input_filter_requires_mapping_data():
    input_filter = _contact_filter()
    try:
        input_filter.set_data("name=Ann")
        assert False, "Expected InputFilterError"
    except InputFilterError:
        pass


def test_input_filter_without_data_cannot_validate():
    try:
        _contact_filter().is_valid()
        assert False, "Expected InputFilterError"
    except InputFilterError:
        pass


def test_unknown_keys():
    input_filter = _contact_filter()
    input_filter.set_data({"name": "Ann", "email": "ann@example.com", "admin": "1"})
    assert input_filter.has_unknown()
    assert input_filter.get_unknown() == {"admin": "1"}


def test_nested_input_filter_receives_sub_mapping():
    address = InputFilter()
    address.add({"name": "city", "required": True})
    input_filter = InputFilter()
    input_filter.add(address, "address")
    input_filter.set_data({"address": {"city": ""}})

    assert not input_filter.is_valid()
    assert input_filter.get_messages() == {"address": {"city": [REQUIRED]}}

    input_filter.set_data({"address": {"city": "Lyon"}})
    assert input_filter.is_valid()
    assert input_filter.get_values() == {"address": {"city": "Lyon"}}


def test_collection_input_filter_validates_each_item():
    item = InputFilter()
    item.add({"name": "title", "required": True})
    collection = CollectionInputFilter(item)
    collection.set_data([{"title": "a"}, {"title": ""}, "junk"])

    assert not collection.is_valid()
    messages = collection.get_messages()
    assert 0 not in messages
    assert messages[1] == {"title": [REQUIRED]}
    assert messages[2] == {"title": [REQUIRED]}
    assert collection.get_values()[0] == {"title": "a"}


def test_collection_input_filter_count_and_required():
    collection = CollectionInputFilter()
    collection.get_input_filter().add({"name": "title", "required": False})
    collection.set_required(True)
    collection.set_count(0)
    collection.set_data({})
    assert not collection.is_valid()
    assert "is_empty" in collection.get_messages()

    collection.set_count(2)
    collection.set_data({0: {"title": "a"}})
    assert not collection.is_valid()
    assert "count" in collection.get_messages()

    collection.set_data({0: {"title": "a"}, 1: {"title": "b"}})
    assert collection.is_valid()


def test_collection_input_filter_item_validation_group():
    item = InputFilter()
    item.add({"name": "title", "required": True})
    item.add({"name": "note", "required": True})
    collection = CollectionInputFilter(item)
    collection.set_data({0: {"title": "a"}, 1: {"title": "b", "note": "n"}})
    collection.set_validation_group({0: {"title": True}, 1: True})

    assert collection.is_valid()
    assert collection.get_values()[0] == {"title": "a"}
    assert collection.get_values()[1] == {"title": "b", "note": "n"}


def test_normalize_validation_group():
    assert normalize_validation_group(None) is None
    assert normalize_validation_group(VALIDATE_ALL) is None
    assert normalize_validation_group(["a", {"b": ["c"]}]) == {"a": True, "b": {"c": True}}
    assert normalize_validation_group({"a": None}) == {"a": True}


class TestInputFilterFactory(unittest.TestCase):
    def setUp(self):
        self.factory = InputFilterFactory()

    def test_validators_with_options(self):
        input = self.factory.create_input({
            "name": "title",
            "validators": [{"name": "string_length", "options": {"min": 2, "max": 4}}],
        })
        input.set_value("abcdef")
        self.assertFalse(input.is_valid())
        input.set_value("abc")
        self.assertTrue(input.is_valid())

    def test_unknown_validator_raises(self):
        with self.assertRaises(InputFilterError):
            self.factory.create_input({"name": "title", "validators": ["no_such_validator"]})

    def test_custom_registrations(self):
        self.factory.register_filter("slug", lambda options: lambda value: value.replace(" ", "-"))
        self.factory.register_validator("even", lambda options: lambda value: None if int(value) % 2 == 0 else "Odd")
        input = self.factory.create_input({"name": "n", "filters": ["slug"], "validators": ["even"]})
        input.set_value("3")
        self.assertFalse(input.is_valid())
        self.assertEqual(input.get_messages(), ["Odd"])

    def test_named_input_filters(self):
        self.factory.register_input_filter("login", {"user": {"required": True}, "password": {"required": True}})
        self.assertTrue(self.factory.has_input_filter("login"))
        first = self.factory.get_input_filter("login")
        second = self.factory.get_input_filter("login")
        self.assertIsNot(first, second)
        self.assertEqual(sorted(first.get_inputs()), ["password", "user"])

        with self.assertRaises(InputFilterError):
            self.factory.get_input_filter("missing")

    def test_nested_and_collection_specs(self):
        input_filter = self.factory.create_input_filter({
            "address": {"type": "input_filter", "city": {"required": True}},
            "items": {"type": "collection", "count": 1, "input_filter": {"sku": {"required": True}}},
        })
        self.assertIsInstance(input_filter.get("address"), InputFilter)
        items = input_filter.get("items")
        self.assertIsInstance(items, CollectionInputFilter)
        self.assertEqual(items.get_count(), 1)
        self.assertTrue(items.get_input_filter().has("sku"))


if __name__ == "__main__":
    unittest.main()
