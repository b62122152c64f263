from collections.abc import Mapping
from typing import Any

_ALLOWED_TYPES = (str, int, float, bool)


def validate_properties(properties: Mapping[str, Any]) -> bool:
    """Return False on the first value that is not a str, int, float or bool.

    Containers and None are rejected. An empty mapping is valid.
    """
    for value in properties.values():
        if not isinstance(value, _ALLOWED_TYPES):
            return False
    return True
