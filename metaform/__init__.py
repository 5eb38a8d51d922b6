from .exceptions import DomainError, FormError, InputFilterError, InvalidArgumentError
from .form import (
    BindOnValidate,
    Collection,
    Element,
    Fieldset,
    Form,
    FormFactory,
    Values,
)
from .input_filter import VALIDATE_ALL, CollectionInputFilter, Input, InputFilter, InputFilterFactory

__version__ = "0.1.0"

get_version = lambda: __version__

__all__ = [
    'VALIDATE_ALL',
    'BindOnValidate',
    'Collection',
    'CollectionInputFilter',
    'DomainError',
    'Element',
    'Fieldset',
    'Form',
    'FormError',
    'FormFactory',
    'Input',
    'InputFilter',
    'InputFilterError',
    'InputFilterFactory',
    'InvalidArgumentError',
    'Values',
]
