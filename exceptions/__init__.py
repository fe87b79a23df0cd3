"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    UnauthorizedError,
    DatabaseError,
    ServiceUnavailableError,

    # Product-specific
    ProductNotFoundError,

    # Catalog parser
    CatalogParseError,
    EmptyCatalogError,
    CatalogMissingColumnsError,

    # Import jobs
    ImportJobNotFoundError,
    InvalidStatusTransitionError,
    ImportInProgressError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "UnauthorizedError",
    "DatabaseError",
    "ServiceUnavailableError",

    # Product
    "ProductNotFoundError",

    # Catalog parser
    "CatalogParseError",
    "EmptyCatalogError",
    "CatalogMissingColumnsError",

    # Import jobs
    "ImportJobNotFoundError",
    "InvalidStatusTransitionError",
    "ImportInProgressError",
]
