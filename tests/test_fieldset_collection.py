import sys
import os
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from metaform.exceptions import DomainError, InvalidArgumentError
from metaform.form import Checkbox, Collection, Element, Fieldset, Select, Text


class Tag:
    def __init__(self, label=None):
        self.label = label


def _tag_fieldset():
    fieldset = Fieldset("tag")
    fieldset.add(Text("label"))
    fieldset.set_object(Tag())
    return fieldset


class TestElement(unittest.TestCase):
    def test_value_attribute_proxies_the_value(self):
        element = Text("title")
        element.set_attribute("value", "x")
        self.assertEqual(element.get_value(), "x")
        self.assertEqual(element.get_attribute("value"), "x")
        self.assertEqual(element.get_attribute("type"), "text")

    def test_wrap_name_keeps_key(self):
        element = Element("city")
        element.wrap_name("address")
        self.assertEqual(element.get_name(), "address[city]")
        self.assertEqual(element.key, "city")

    def test_checkbox_values(self):
        checkbox = Checkbox("agree", {"checked_value": "yes", "unchecked_value": "no"})
        self.assertEqual(checkbox.get_value(), "no")
        checkbox.set_value(True)
        self.assertTrue(checkbox.is_checked())
        spec = checkbox.get_input_specification()
        self.assertEqual(spec["validators"][0]["options"]["haystack"], ["yes", "no"])

    def test_select_empty_option_makes_it_optional(self):
        select = Select("color", {"value_options": ["red", "blue"]})
        self.assertTrue(select.get_input_specification()["required"])
        select.set_options({"empty_option": "Pick one"})
        self.assertFalse(select.get_input_specification()["required"])


class TestFieldset(unittest.TestCase):
    def test_add_requires_a_name(self):
        fieldset = Fieldset("f")
        with self.assertRaises(InvalidArgumentError):
            fieldset.add(Text())
        fieldset.add(Text(), {"name": "title"})
        self.assertTrue(fieldset.has("title"))

    def test_get_unknown_child_raises(self):
        with self.assertRaises(InvalidArgumentError):
            Fieldset("f").get("missing")

    def test_priority_orders_iteration(self):
        fieldset = Fieldset("f")
        fieldset.add(Text("a"))
        fieldset.add(Text("b"), {"priority": 10})
        fieldset.add(Text("c"))
        self.assertEqual([child.key for child in fieldset], ["b", "a", "c"])

    def test_specification_dicts_are_built_by_the_factory(self):
        fieldset = Fieldset("f")
        fieldset.add({"type": "email", "name": "email"})
        self.assertEqual(fieldset.get("email").get_attribute("type"), "email")

    def test_populate_values_recurses(self):
        fieldset = Fieldset("profile")
        fieldset.add(Text("name"))
        address = Fieldset("address")
        address.add(Text("city"))
        fieldset.add(address)

        fieldset.populate_values({"name": "Ann", "address": {"city": "Lyon"}})
        self.assertEqual(fieldset.get("name").get_value(), "Ann")
        self.assertEqual(address.get("city").get_value(), "Lyon")

    def test_messages_are_distributed(self):
        fieldset = Fieldset("profile")
        fieldset.add(Text("name"))
        fieldset.set_messages({"name": ["Too short"], "other": ["Kept"]})
        self.assertEqual(fieldset.get("name").get_messages(), ["Too short"])
        self.assertEqual(fieldset.get_messages(), {"other": ["Kept"], "name": ["Too short"]})
        self.assertEqual(fieldset.get_messages("name"), ["Too short"])

    def test_extract_and_bind_nested_objects(self):
        class Address:
            def __init__(self):
                self.city = "Lyon"

        class Person:
            def __init__(self):
                self.name = "Ann"
                self.address = Address()

        person = Person()
        fieldset = Fieldset("person")
        fieldset.add(Text("name"))
        address = Fieldset("address")
        address.add(Text("city"))
        fieldset.add(address)
        fieldset.set_object(person)

        self.assertEqual(fieldset.extract(), {"name": "Ann", "address": {"city": "Lyon"}})
        self.assertIs(address.get_object(), person.address)

        fieldset.bind_values({"name": "Bea", "address": {"city": "Nice"}})
        self.assertEqual(person.name, "Bea")
        self.assertEqual(person.address.city, "Nice")

    def test_bind_values_respects_validation_group(self):
        person = Tag("old")
        fieldset = Fieldset("tag")
        fieldset.add(Text("label"))
        fieldset.add(Text("color"))
        fieldset.set_object(person)
        fieldset.bind_values({"label": "new", "color": "red"}, {"color": True})
        self.assertEqual(person.label, "old")
        self.assertEqual(person.color, "red")

    def test_allow_object_binding(self):
        fieldset = Fieldset("tag", {"allowed_object_binding_class": Tag})
        self.assertTrue(fieldset.allow_object_binding(Tag()))
        self.assertFalse(fieldset.allow_object_binding(object()))
        self.assertFalse(fieldset.allow_object_binding("text"))


class TestCollection(unittest.TestCase):
    def test_prepare_creates_count_items(self):
        collection = Collection("tags", {"target_element": Text("tag"), "count": 2})
        collection.prepare_element(None)
        self.assertEqual([child.key for child in collection], ["0", "1"])
        self.assertEqual(collection.get("1").get_name(), "tags[1]")

    def test_template_element(self):
        collection = Collection("tags", {
            "target_element": Text("tag"),
            "count": 0,
            "should_create_template": True,
        })
        collection.prepare_element(None)
        self.assertEqual(collection.get_template_element().get_name(), "tags[__index__]")

    def test_target_element_from_specification(self):
        collection = Collection("tags", {"target_element": {"type": "text", "name": "tag"}})
        self.assertIsInstance(collection.get_target_element(), Text)

    def test_populate_adds_and_removes_items(self):
        collection = Collection("tags", {"target_element": Text("tag"), "count": 0})
        collection.populate_values(["a", "b", "c"])
        self.assertEqual(len(collection), 3)
        self.assertEqual(collection.get("2").get_value(), "c")

        collection.populate_values({0: "a", 2: "c"})
        self.assertEqual([child.key for child in collection], ["0", "2"])

    def test_populate_beyond_count_without_allow_add(self):
        collection = Collection("tags", {"target_element": Text("tag"), "count": 1, "allow_add": False})
        with self.assertRaises(DomainError):
            collection.populate_values(["a", "b"])

    def test_populate_below_count_without_allow_remove(self):
        collection = Collection("tags", {"target_element": Text("tag"), "count": 2, "allow_remove": False})
        with self.assertRaises(DomainError):
            collection.populate_values(["a"])

    def test_set_object_requires_iterable(self):
        collection = Collection("tags", {"target_element": _tag_fieldset()})
        with self.assertRaises(InvalidArgumentError):
            collection.set_object(5)

        collection.set_object(Tag(label) for label in "abc")
        self.assertEqual(collection.get_count(), 3)
        self.assertEqual(collection.extract(), {
            0: {"label": "a"},
            1: {"label": "b"},
            2: {"label": "c"},
        })

    def test_bind_values_returns_bound_items(self):
        collection = Collection("tags", {"target_element": _tag_fieldset(), "count": 0})
        collection.populate_values([{"label": "x"}, {"label": "y"}])
        bound = collection.bind_values({0: {"label": "x"}, 1: {"label": "y"}})
        self.assertEqual([tag.label for tag in bound], ["x", "y"])
        self.assertIsNot(bound[0], bound[1])

    def test_bind_values_for_plain_elements(self):
        collection = Collection("tags", {"target_element": Text("tag"), "count": 0})
        collection.populate_values(["a", "b"])
        self.assertEqual(collection.bind_values({0: "a", 1: "b"}), ["a", "b"])


if __name__ == "__main__":
    unittest.main()
