"""Service layer."""

from qbank.services.items import ItemService

__all__ = ["ItemService"]
