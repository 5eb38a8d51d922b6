from .interfaces import (
    BindOnValidate,
    ElementPrepareAware,
    InputFilterAware,
    InputFilterProvider,
    InputProvider,
    Values,
)
from .element import Element
from .elements import Checkbox, Email, Hidden, Number, Select, Text
from .fieldset import Fieldset
from .collection import Collection
from .form import FilterState, Form
from .factory import FormFactory

__all__ = [
    'BindOnValidate',
    'Checkbox',
    'Collection',
    'Element',
    'ElementPrepareAware',
    'Email',
    'FilterState',
    'Fieldset',
    'Form',
    'FormFactory',
    'Hidden',
    'InputFilterAware',
    'InputFilterProvider',
    'InputProvider',
    'Number',
    'Select',
    'Text',
    'Values',
]
