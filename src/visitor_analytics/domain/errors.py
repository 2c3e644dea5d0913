"""Domain errors."""


class StoreUnavailableError(RuntimeError):
    """Raised by storage adapters when the document store cannot be reached."""

    def __init__(self, message: str = "Database not available") -> None:
        super().__init__(message)
