"""Book index core package."""

from .async_catalog import AsyncBookCatalog, OperationOutcome
from .catalog import BookCatalog

__all__ = ["BookCatalog", "AsyncBookCatalog", "OperationOutcome"]
