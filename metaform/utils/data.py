from typing import Any, Dict, Iterable, List, Mapping, Optional, Union


def iterator_to_dict(data: Union[Mapping, Iterable], recursive: bool = True) -> Dict[Any, Any]:
    """
    Normalizes a mapping or an iterable of (key, value) pairs into a nested dict.

    Lists made only of mappings are treated as repeated groups and become
    index-keyed dicts; lists of scalars are left as lists.
    """
    if isinstance(data, Mapping):
        items = data.items()
    else:
        items = data

    result: Dict[Any, Any] = {}
    for key, value in items:
        result[key] = normalize_value(value) if recursive else value
    return result


def normalize_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return iterator_to_dict(value)
    if isinstance(value, (list, tuple)) and value and all(isinstance(item, Mapping) for item in value):
        return {index: iterator_to_dict(item) for index, item in enumerate(value)}
    return value


def as_indexed(value: Any) -> Optional[Dict[Any, Any]]:
    """
    Returns a keyed view of a repeated group, or None if the value is not one.

    Dicts are returned as is, lists and tuples are keyed by position.
    """
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (list, tuple)):
        return dict(enumerate(value))
    return None


def index_keys(value: Any) -> List[Any]:
    indexed = as_indexed(value)
    if indexed is None:
        return []
    return list(indexed.keys())
