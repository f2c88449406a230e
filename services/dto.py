"""
services/dto.py
===============
Create / update / response shapes exchanged with service callers.

Update DTOs fully replace an entity's mutable fields. Response DTOs carry
denormalized display names (client_name, resource_name, unit_name).
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


# ─── Clients ─────────────────────────────────────────────────────────────────

@dataclass
class ClientCreate:
    name: str
    address: Optional[str] = None


@dataclass
class ClientUpdate:
    id: int
    name: str
    address: Optional[str] = None


@dataclass
class ClientResponse:
    id: int
    name: str
    address: Optional[str] = None
    is_archived: bool = False
    archived_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ─── Resources / Units ───────────────────────────────────────────────────────

@dataclass
class ResourceCreate:
    name: str


@dataclass
class ResourceUpdate:
    id: int
    name: str


@dataclass
class ResourceResponse:
    id: int
    name: str
    is_archived: bool = False
    archived_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class UnitCreate:
    name: str


@dataclass
class UnitUpdate:
    id: int
    name: str


@dataclass
class UnitResponse:
    id: int
    name: str
    is_archived: bool = False
    archived_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ─── Documents ───────────────────────────────────────────────────────────────

@dataclass
class DocumentItemInput:
    resource_id: int
    unit_id: int
    quantity: Decimal


@dataclass
class DocumentItemResponse:
    id: int
    resource_id: int
    unit_id: int
    quantity: Decimal
    resource_name: str = ""
    unit_name: str = ""


@dataclass
class ReceiptCreate:
    number: str
    date: date
    items: List[DocumentItemInput] = field(default_factory=list)


@dataclass
class ReceiptUpdate:
    id: int
    number: str
    date: date
    items: List[DocumentItemInput] = field(default_factory=list)


@dataclass
class ReceiptResponse:
    id: int
    number: str
    date: date
    items: List[DocumentItemResponse] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ShipmentCreate:
    number: str
    date: date
    client_id: int
    items: List[DocumentItemInput] = field(default_factory=list)


@dataclass
class ShipmentUpdate:
    id: int
    number: str
    date: date
    client_id: int
    items: List[DocumentItemInput] = field(default_factory=list)


@dataclass
class ShipmentResponse:
    id: int
    number: str
    date: date
    client_id: int
    status: str
    client_name: str = ""
    items: List[DocumentItemResponse] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ─── Balances ────────────────────────────────────────────────────────────────

@dataclass
class BalanceResponse:
    id: int
    resource_id: int
    unit_id: int
    quantity: Decimal
    resource_name: str = ""
    unit_name: str = ""
