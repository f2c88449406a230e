"""
services/balance_service.py
===========================
Materialized on-hand quantity per (resource, unit).

Balances are never created directly by callers. They move when:
  - a receipt is created / updated / deleted   (± item quantities)
  - a shipment is signed                        (− item quantities)

A row exists only while its quantity is above zero, and no change may
take a balance below zero. ``recompute()`` rebuilds every row from the
documents (receipts minus signed shipments).
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import logging

from database.crud.balances_crud import BalancesCRUD
from database.crud.resources_crud import ResourcesCRUD
from database.crud.search import SearchModel
from database.crud.units_crud import UnitsCRUD
from database.db_utils import utc_now
from database.models.balance import Balance
from database.models.base import unit_of_work
from exceptions import InsufficientBalanceError, NotFoundError
from services.dto import BalanceResponse
from services.model_service import map_fields

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

BalanceKey = Tuple[int, int]


@dataclass
class ProcessingStats:
    """Outcome of a full balance rebuild."""
    processed: int = 0
    created: int = 0
    updated: int = 0
    removed: int = 0
    unchanged: int = 0
    inconsistent: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


def collect_quantities(items: Iterable, sign: int = 1) -> Dict[BalanceKey, Decimal]:
    """Sum item quantities per (resource_id, unit_id), multiplied by ``sign``."""
    totals: Dict[BalanceKey, Decimal] = defaultdict(lambda: ZERO)
    for item in items:
        totals[(item.resource_id, item.unit_id)] += Decimal(item.quantity) * sign
    return dict(totals)


def merge_changes(*changes: Mapping[BalanceKey, Decimal]) -> Dict[BalanceKey, Decimal]:
    merged: Dict[BalanceKey, Decimal] = defaultdict(lambda: ZERO)
    for change in changes:
        for key, delta in change.items():
            merged[key] += delta
    return {key: delta for key, delta in merged.items() if delta != ZERO}


class BalanceService:

    includes = ("resource", "unit")

    def __init__(self, session_factory=None):
        self.session_factory = session_factory

    # ========================================================================
    # Reads
    # ========================================================================

    def get_current_balance(self, resource_id: int, unit_id: int) -> Decimal:
        with unit_of_work(self.session_factory) as session:
            row = BalancesCRUD(session).get_for(resource_id, unit_id)
            return Decimal(row.quantity) if row is not None else ZERO

    def has_sufficient_balance(self, resource_id: int, unit_id: int, quantity) -> bool:
        return self.get_current_balance(resource_id, unit_id) >= Decimal(quantity)

    def get_by_id(self, id: int) -> BalanceResponse:
        with unit_of_work(self.session_factory) as session:
            row = BalancesCRUD(session).get_by_id(id, includes=self.includes)
            if row is None:
                raise NotFoundError("Balance", id)
            return self.to_response(row)

    def query(self, search: Optional[SearchModel] = None) -> Tuple[List[BalanceResponse], int]:
        """
        Warehouse balance list.

        Search matches resource and unit names; sort accepts
        ``resource.name``, ``unit.name``, ``quantity``; filters accept
        ``resource_id``, ``unit_id`` and ``quantity.from`` / ``quantity.to``.
        """
        with unit_of_work(self.session_factory) as session:
            rows, total = BalancesCRUD(session).query_by(search, includes=self.includes)
            return [self.to_response(row) for row in rows], total

    @staticmethod
    def to_response(row: Balance) -> BalanceResponse:
        return map_fields(
            row, BalanceResponse,
            resource_name=row.resource.name if row.resource is not None else "",
            unit_name=row.unit.name if row.unit is not None else "",
        )

    # ========================================================================
    # Writes
    # ========================================================================

    def apply_changes(self, changes: Mapping[BalanceKey, Decimal]) -> None:
        """
        Add each delta to its (resource, unit) balance.

        All-or-nothing: every resulting balance is checked first, and any
        that would go negative aborts the whole change set.

        Raises:
            InsufficientBalanceError: listing every short pair
        """
        changes = {key: delta for key, delta in changes.items() if delta != ZERO}
        if not changes:
            return

        with unit_of_work(self.session_factory) as session:
            crud = BalancesCRUD(session)
            current = {key: crud.get_for(*key) for key in changes}

            short = []
            for key, delta in changes.items():
                available = Decimal(current[key].quantity) if current[key] is not None else ZERO
                if available + delta < ZERO:
                    short.append((key, -delta, available))
            if short:
                labels = self._labels(session, [key for key, _, _ in short])
                raise InsufficientBalanceError(
                    [(labels[key], required, available) for key, required, available in short]
                )

            for key, delta in changes.items():
                row = current[key]
                if row is None:
                    crud.create(Balance(resource_id=key[0], unit_id=key[1], quantity=delta))
                    continue
                new_quantity = Decimal(row.quantity) + delta
                if new_quantity == ZERO:
                    crud.delete(row.id)
                else:
                    row.quantity = new_quantity
                    crud.update(row)
            logger.debug(f"Balance changes applied: {changes}")

    def recompute(self) -> ProcessingStats:
        """Rebuild every balance row from receipts minus signed shipments."""
        stats = ProcessingStats(started_at=utc_now())
        with unit_of_work(self.session_factory) as session:
            crud = BalancesCRUD(session)
            expected = crud.totals_from_documents()
            existing, _ = crud.query_by(SearchModel(page=0, size=0))
            rows = {(row.resource_id, row.unit_id): row for row in existing}
            stale_ids: List[int] = []
            new_rows: List[Balance] = []

            for key in sorted(set(expected) | set(rows)):
                stats.processed += 1
                quantity = expected.get(key, ZERO)
                row = rows.get(key)

                if quantity < ZERO:
                    stats.inconsistent += 1
                    logger.warning(
                        f"Shipments exceed receipts for resource_id={key[0]} unit_id={key[1]}: {quantity}"
                    )
                    quantity = ZERO

                if quantity == ZERO:
                    if row is not None:
                        stale_ids.append(row.id)
                    continue

                if row is None:
                    new_rows.append(Balance(resource_id=key[0], unit_id=key[1], quantity=quantity))
                elif Decimal(row.quantity) != quantity:
                    row.quantity = quantity
                    crud.update(row)
                    stats.updated += 1
                else:
                    stats.unchanged += 1

            if stale_ids:
                stats.removed = crud.delete_where(Balance.id.in_(stale_ids))
            if new_rows:
                stats.created = len(crud.bulk_create(new_rows))

        stats.finished_at = utc_now()
        logger.info(
            f"Balance recompute finished: processed={stats.processed} created={stats.created} "
            f"updated={stats.updated} removed={stats.removed} inconsistent={stats.inconsistent}"
        )
        return stats

    @staticmethod
    def _labels(session, keys: List[BalanceKey]) -> Dict[BalanceKey, str]:
        """Display label per key, e.g. ``Steel (kg)``; ids stand in for missing rows."""
        resources = ResourcesCRUD(session).get_by_ids(key[0] for key in keys)
        units = UnitsCRUD(session).get_by_ids(key[1] for key in keys)
        labels = {}
        for resource_id, unit_id in keys:
            resource = resources.get(resource_id)
            unit = units.get(unit_id)
            resource_name = resource.name if resource is not None else f"#{resource_id}"
            unit_name = unit.name if unit is not None else f"#{unit_id}"
            labels[(resource_id, unit_id)] = f"{resource_name} ({unit_name})"
        return labels
