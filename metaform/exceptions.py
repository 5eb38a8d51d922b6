class FormError(Exception):
    """Base exception for form-related errors."""
    pass

class InvalidArgumentError(FormError, ValueError):
    """Exception raised when a caller passes an argument outside the permitted values."""
    pass

class DomainError(FormError, RuntimeError):
    """Exception raised when an operation is invoked in a state that makes it meaningless."""
    pass

class InputFilterError(FormError, RuntimeError):
    """Exception raised when an input filter is used outside its contract."""
    pass
