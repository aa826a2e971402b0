"""Client-facing errors raised by the namespace services."""


class NamespaceError(Exception):
    """Base error carrying the HTTP status it should be reported with."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MethodNotAllowed(NamespaceError):
    status_code = 405

    def __init__(self, method: str):
        super().__init__(f"Cannot {method.lower()}() with Workers Assets namespace")
        self.method = method


class InvalidListOptions(NamespaceError):
    status_code = 400


class IllegalKeyName(NamespaceError):
    status_code = 400


class KeyTooLong(NamespaceError):
    status_code = 414


class InvalidPath(NamespaceError):
    """A key resolving to a location outside the served tree."""

    status_code = 400
