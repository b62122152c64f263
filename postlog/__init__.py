from postlog.client import PostlogAnalytics, get_shared_client
from postlog.core.config import SDK_VERSION as __version__
from postlog.core.config import Settings
from postlog.errors import (
    InvalidPropertiesError,
    InvalidResponseError,
    InvalidURLError,
    NotInitializedError,
    PostlogError,
    RequestFailedError,
    SerializationFailedError,
)
from postlog.validators import validate_properties

__all__ = [
    "InvalidPropertiesError",
    "InvalidResponseError",
    "InvalidURLError",
    "NotInitializedError",
    "PostlogAnalytics",
    "PostlogError",
    "RequestFailedError",
    "SerializationFailedError",
    "Settings",
    "__version__",
    "get_shared_client",
    "validate_properties",
]
