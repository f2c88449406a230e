"""
exceptions.py
=============
Warehouse: Hierarchical Exception System

All application exceptions inherit from WarehouseError so callers
can catch the full hierarchy with a single except clause when needed.

Structure
---------
WarehouseError
├── PersistenceError            → 500
├── NotFoundError               → 404
├── ValidationError             → 400
│   ├── MissingFieldError
│   ├── InvalidValueError
│   ├── DuplicateError
│   ├── InsufficientBalanceError
│   └── InvalidStateError
└── ConfigurationError
"""
from decimal import Decimal
from typing import Iterable, Tuple


# ─── Root ────────────────────────────────────────────────────────────────────

class WarehouseError(Exception):
    """Base exception for all warehouse errors."""

    def __init__(self, message: str = "", *, code: str = "", detail: str = ""):
        super().__init__(message)
        self.message = message
        self.code = code          # machine-readable code e.g. "SHIPMENT_SIGNED"
        self.detail = detail      # extra context for logging

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} | {self.detail}"
        return self.message


# ─── Persistence ─────────────────────────────────────────────────────────────

class PersistenceError(WarehouseError):
    """Raised when a storage or connectivity operation fails unexpectedly."""


class NotFoundError(WarehouseError):
    """Raised when a requested record does not exist in the database."""

    def __init__(self, entity: str = "", id_value=None, **kwargs):
        if entity and id_value is not None:
            message = f"{entity} with id={id_value} not found"
        elif entity:
            message = f"{entity} not found"
        else:
            message = kwargs.pop("message", "Record not found")
        super().__init__(message, **kwargs)
        self.entity = entity
        self.id_value = id_value


# ─── Validation ──────────────────────────────────────────────────────────────

class ValidationError(WarehouseError):
    """Raised when user-provided data fails validation."""

    def __init__(self, message: str = "", *, field: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.field = field


class MissingFieldError(ValidationError):
    """Raised when a required field is empty or None."""

    def __init__(self, field: str, **kwargs):
        super().__init__(f"Required field is missing: '{field}'", field=field, **kwargs)


class InvalidValueError(ValidationError):
    """Raised when a field value is out of range or has an invalid format."""

    def __init__(self, field: str, value=None, reason: str = "", **kwargs):
        msg = f"Invalid value for field '{field}'"
        if value is not None:
            msg += f": {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, field=field, **kwargs)
        self.value = value
        self.reason = reason


class DuplicateError(ValidationError):
    """Raised when a name or number is already taken."""

    def __init__(self, entity: str = "", field: str = "", value=None, **kwargs):
        if entity and field:
            message = f"{entity} with {field}={value!r} already exists"
        else:
            message = kwargs.pop("message", "Duplicate record")
        super().__init__(message, field=field, **kwargs)
        self.entity = entity
        self.value = value


class InsufficientBalanceError(ValidationError):
    """
    Raised when an operation would drive a balance below zero.

    ``shortages`` holds (label, required, available) tuples, one per
    resource/unit pair that is short.
    """

    def __init__(self, shortages: Iterable[Tuple[str, Decimal, Decimal]], **kwargs):
        self.shortages = list(shortages)
        lines = [
            f"{label}: required {required}, available {available}"
            for label, required, available in self.shortages
        ]
        super().__init__(
            "Insufficient balance: " + "; ".join(lines),
            code=kwargs.pop("code", "INSUFFICIENT_BALANCE"),
            **kwargs,
        )


class InvalidStateError(ValidationError):
    """Raised when an operation is not allowed in the record's current state."""


# ─── Configuration ───────────────────────────────────────────────────────────

class ConfigurationError(WarehouseError):
    """Raised when the application configuration is invalid or incomplete."""
