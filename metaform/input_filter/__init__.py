from metaform.input_filter.input import Input
from metaform.input_filter.input_filter import (
    VALIDATE_ALL,
    CollectionInputFilter,
    InputFilter,
    normalize_validation_group,
)
from metaform.input_filter.factory import InputFilterFactory
from metaform.input_filter.filters import Filter
from metaform.input_filter.validator import Validator

__all__ = [
    "VALIDATE_ALL",
    "CollectionInputFilter",
    "Filter",
    "Input",
    "InputFilter",
    "InputFilterFactory",
    "Validator",
    "normalize_validation_group",
]
