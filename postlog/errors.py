class PostlogError(Exception):
    """Base class for errors delivered to analytics completions."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PostlogError) or type(self) is not type(other):
            return NotImplemented
        return self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class NotInitializedError(PostlogError):
    def __init__(self) -> None:
        super().__init__("Analytics not initialized with token")


class InvalidPropertiesError(PostlogError):
    def __init__(self) -> None:
        super().__init__("Property values must be str, int, float or bool")


class InvalidURLError(PostlogError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid URL: {url}")
        self.url = url


class SerializationFailedError(PostlogError):
    def __init__(self) -> None:
        super().__init__("Failed to serialize payload as JSON")


class InvalidResponseError(PostlogError):
    def __init__(self) -> None:
        super().__init__("Transport returned an invalid response")


class RequestFailedError(PostlogError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Request failed with status code {status_code}")
        self.status_code = status_code
