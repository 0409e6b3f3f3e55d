"""
Catalog Errors

Every failure raised by the store, query engine and mutation engine is a
CatalogError subclass, so transport adapters can map them uniformly.
"""

from typing import List, Optional


class CatalogError(Exception):
    """Base class for all catalog errors"""

    code = "INTERNAL"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CatalogError):
    """A product id does not resolve"""

    code = "NOT_FOUND"


class AlreadyExistsError(CatalogError):
    """A SKU is already claimed by an active product"""

    code = "ALREADY_EXISTS"


class InvalidArgumentError(CatalogError):
    """Malformed operation, e.g. unknown stock operation or negative offset"""

    code = "INVALID_ARGUMENT"


class ConflictError(CatalogError):
    """An id is already present in (or was previously issued by) the store"""

    code = "CONFLICT"


class ValidationError(CatalogError):
    """One or more field constraints were violated"""

    code = "BAD_USER_INPUT"

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "Invalid input provided: " + "; ".join(self.errors))
