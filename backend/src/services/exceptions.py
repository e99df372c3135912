"""Shared exceptions for service layer operations."""


class BackendError(Exception):
    """
    Raised when a call into the managed backend fails.

    The backend adapter wraps every client-library error in this type, so page
    components only ever need to handle one exception. The original error is
    kept as `__cause__`.
    """

    def __init__(self, operation: str, message: str = "") -> None:
        self.operation = operation
        detail = f": {message}" if message else ""
        super().__init__(f"Backend {operation} failed{detail}")
