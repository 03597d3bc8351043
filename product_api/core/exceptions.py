"""
Error taxonomy shared by the repository, service and handler layers.
"""


class ProductAPIError(Exception):
    """Base class for errors raised by the product API."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(ProductAPIError):
    """Malformed request body or path parameter."""


class NotFoundError(ProductAPIError):
    """No row exists for the requested id."""


class StorageError(ProductAPIError):
    """Database I/O or constraint failure."""


class IndexInitError(ProductAPIError):
    """The log index could not be found or created in the search backend."""
