"""
Warehouse Constants - Single Source of Truth
============================================

Constants shared by the models, repositories and services.
"""
import enum


class ShipmentStatus(str, enum.Enum):
    """Lifecycle of a shipment document. Draft → Signed is one-way."""

    DRAFT = "Draft"
    SIGNED = "Signed"


class SortDirection:
    ASC = "asc"
    DESC = "desc"

    ALL = (ASC, DESC)


class Pagination:
    DEFAULT_PAGE = 1
    DEFAULT_SIZE = 10
    MAX_SIZE = 1000


class DatabaseFields:
    """
    Column names referenced by string (filters, sorting, mapping).

    Usage:
        from constants import DatabaseFields as DB
        filters = {DB.IS_ARCHIVED: False}
    """

    ID = "id"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    IS_ARCHIVED = "is_archived"
    ARCHIVED_AT = "archived_at"
    NAME = "name"
    NUMBER = "number"
    DATE = "date"
    CLIENT_ID = "client_id"
    RESOURCE_ID = "resource_id"
    UNIT_ID = "unit_id"
    QUANTITY = "quantity"
    STATUS = "status"


# Suffixes recognised on filter keys: "date.from" / "date.to"
RANGE_FROM_SUFFIX = ".from"
RANGE_TO_SUFFIX = ".to"

# Numeric precision for item and balance quantities
QUANTITY_PRECISION = 18
QUANTITY_SCALE = 3

GENERIC_ERROR_MESSAGE = "An internal error occurred."
