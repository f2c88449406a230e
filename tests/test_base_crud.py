# -*- coding: utf-8 -*-
"""
tests/test_base_crud.py
=========================
Tests for BaseCRUD through its concrete repositories.
Uses the in-memory SQLite fixtures from conftest.
"""
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from database.crud.balances_crud import BalancesCRUD
from database.crud.receipts_crud import ReceiptsCRUD
from database.crud.resources_crud import ResourcesCRUD
from database.crud.search import SearchModel, SortSpec
from database.crud.units_crud import UnitsCRUD
from database.models import Balance, ReceiptDocument, ReceiptItem, Resource, Unit
from exceptions import NotFoundError, ValidationError


def _names(items):
    return [x.name for x in items]


# ── create ────────────────────────────────────────────────────────────────────

class TestCreate:

    def test_assigns_id_and_created_at(self, session_factory):
        r = ResourcesCRUD(session_factory).create(Resource(name="Steel"))
        assert r.id is not None
        assert r.created_at is not None
        assert r.updated_at is None

    def test_missing_foreign_key_rejected(self, session_factory, make_resource):
        res = make_resource()
        with pytest.raises(ValidationError) as exc:
            BalancesCRUD(session_factory).create(
                Balance(resource_id=res.id, unit_id=9999, quantity=Decimal("1"))
            )
        assert exc.value.field == "unit_id"

    def test_missing_foreign_key_in_child_rows_rejected(self, session_factory, make_unit):
        unit = make_unit()
        doc = ReceiptDocument(number="R-1", date=date(2026, 1, 1), items=[
            ReceiptItem(resource_id=4242, unit_id=unit.id, quantity=Decimal("1")),
        ])
        with pytest.raises(ValidationError) as exc:
            ReceiptsCRUD(session_factory).create(doc)
        assert exc.value.field == "resource_id"

    def test_bulk_create(self, session_factory):
        crud = UnitsCRUD(session_factory)
        rows = crud.bulk_create([Unit(name="kg"), Unit(name="pcs")])
        assert all(u.id for u in rows)
        assert crud.get_count() == 2


# ── reads ─────────────────────────────────────────────────────────────────────

class TestRead:

    def test_get_by_id_missing_returns_none(self, session_factory):
        assert ResourcesCRUD(session_factory).get_by_id(12345) is None

    def test_get_by_id_with_includes(self, session_factory, make_resource, make_unit):
        res, unit = make_resource("Steel"), make_unit("kg")
        doc = ReceiptsCRUD(session_factory).create(ReceiptDocument(
            number="R-7", date=date(2026, 2, 1),
            items=[ReceiptItem(resource_id=res.id, unit_id=unit.id, quantity=Decimal("3"))],
        ))
        loaded = ReceiptsCRUD(session_factory).get_by_id(doc.id, includes=("items.resource",))
        assert loaded.items[0].resource.name == "Steel"

    def test_unknown_include_rejected(self, session_factory, make_resource):
        res = make_resource()
        with pytest.raises(ValidationError) as exc:
            ResourcesCRUD(session_factory).get_by_id(res.id, includes=("balances",))
        assert exc.value.field == "includes"

    def test_get_by_ids_skips_missing(self, session_factory, make_resource):
        a, b = make_resource(), make_resource()
        found = ResourcesCRUD(session_factory).get_by_ids([a.id, b.id, 999, None])
        assert set(found) == {a.id, b.id}

    def test_get_first_or_default(self, session_factory, make_resource):
        make_resource("Alpha")
        crud = ResourcesCRUD(session_factory)
        assert crud.get_first_or_default(Resource.name == "Alpha").name == "Alpha"
        assert crud.get_first_or_default(Resource.name == "Omega") is None

    def test_exists_ci_ignores_case_and_whitespace(self, session_factory, make_resource):
        r = make_resource("Steel")
        crud = ResourcesCRUD(session_factory)
        assert crud.exists_ci("name", "  sTeEl ")
        assert not crud.exists_ci("name", "steel", exclude_id=r.id)


# ── query_by ──────────────────────────────────────────────────────────────────

class TestQueryBy:

    @pytest.fixture
    def five(self, make_resource):
        for name in ("Copper", "steel", "Aluminium", "Steel wire", "Zinc"):
            make_resource(name)

    def test_total_is_independent_of_paging(self, session_factory, five):
        crud = ResourcesCRUD(session_factory)
        page1, total1 = crud.query_by(SearchModel(page=1, size=2, sort=[SortSpec("name")]))
        page3, total3 = crud.query_by(SearchModel(page=3, size=2, sort=[SortSpec("name")]))
        assert total1 == total3 == 5
        assert len(page1) == 2
        assert len(page3) == 1

    def test_unpaged_returns_everything(self, session_factory, five):
        items, total = ResourcesCRUD(session_factory).query_by(SearchModel(page=0, size=0))
        assert len(items) == total == 5

    def test_search_is_case_insensitive(self, session_factory, five):
        items, total = ResourcesCRUD(session_factory).query_by(SearchModel(search_term="STEEL"))
        assert total == 2
        assert set(_names(items)) == {"steel", "Steel wire"}

    def test_search_escapes_like_wildcards(self, session_factory, make_resource):
        make_resource("100% cotton")
        make_resource("1000 cotton")
        items, total = ResourcesCRUD(session_factory).query_by(SearchModel(search_term="100%"))
        assert _names(items) == ["100% cotton"]

    def test_sort_descending(self, session_factory, five):
        items, _ = ResourcesCRUD(session_factory).query_by(
            SearchModel(sort=[SortSpec("name", "desc")], page=0)
        )
        assert _names(items)[0] == "Zinc"

    def test_default_order_is_by_id(self, session_factory, five):
        items, _ = ResourcesCRUD(session_factory).query_by(SearchModel(page=0))
        ids = [x.id for x in items]
        assert ids == sorted(ids)

    def test_ties_broken_by_id(self, session_factory, make_resource):
        crud = ResourcesCRUD(session_factory)
        for _ in range(4):
            make_resource()
        items, _ = crud.query_by(SearchModel(sort=[SortSpec("is_archived")], page=0))
        ids = [x.id for x in items]
        assert ids == sorted(ids)

    def test_filter_by_archived_flag(self, session_factory, make_resource):
        make_resource("Live")
        make_resource("Old", archived=True)
        items, total = ResourcesCRUD(session_factory).query_by(
            SearchModel(filters={"is_archived": "true"})
        )
        assert total == 1
        assert _names(items) == ["Old"]

    def test_filter_in_list(self, session_factory, five):
        crud = ResourcesCRUD(session_factory)
        all_items, _ = crud.query_by(SearchModel(page=0))
        wanted = [all_items[0].id, all_items[2].id]
        items, total = crud.query_by(SearchModel(filters={"id": ",".join(map(str, wanted))}))
        assert total == 2
        assert {x.id for x in items} == set(wanted)

    def test_unknown_filter_raises(self, session_factory):
        with pytest.raises(ValidationError):
            ResourcesCRUD(session_factory).query_by(SearchModel(filters={"colour": "red"}))

    def test_filter_through_collection(self, session_factory, make_resource, make_unit):
        res_a, res_b, unit = make_resource(), make_resource(), make_unit()
        crud = ReceiptsCRUD(session_factory)
        crud.create(ReceiptDocument(number="R-A", date=date(2026, 1, 1), items=[
            ReceiptItem(resource_id=res_a.id, unit_id=unit.id, quantity=Decimal("1"))]))
        crud.create(ReceiptDocument(number="R-B", date=date(2026, 1, 2), items=[
            ReceiptItem(resource_id=res_b.id, unit_id=unit.id, quantity=Decimal("1"))]))
        items, total = crud.query_by(SearchModel(filters={"items.resource_id": res_b.id}))
        assert total == 1
        assert items[0].number == "R-B"

    def test_date_range(self, session_factory):
        crud = ReceiptsCRUD(session_factory)
        for day in (1, 10, 20):
            crud.create(ReceiptDocument(number=f"R-{day}", date=date(2026, 3, day), items=[]))
        items, total = crud.query_by(SearchModel(
            filters={"date.from": "2026-03-05", "date.to": "2026-03-20"},
            sort=[SortSpec("date")],
        ))
        assert total == 2
        assert [x.number for x in items] == ["R-10", "R-20"]

    def test_sort_by_related_column(self, session_factory, make_resource, make_unit):
        unit = make_unit()
        crud = BalancesCRUD(session_factory)
        for name in ("Gamma", "Alpha", "Beta"):
            crud.create(Balance(resource_id=make_resource(name).id, unit_id=unit.id, quantity=Decimal("1")))
        items, _ = crud.query_by(
            SearchModel(sort=[SortSpec("resource.name")], page=0), includes=("resource",)
        )
        assert [b.resource.name for b in items] == ["Alpha", "Beta", "Gamma"]


# ── update ────────────────────────────────────────────────────────────────────

class TestUpdate:

    def test_update_attached_instance(self, session_factory, make_resource):
        r = make_resource("Old")
        r.name = "New"
        updated = ResourcesCRUD(session_factory).update(r)
        assert updated.name == "New"
        assert updated.updated_at is not None

    def test_update_from_transient_copy(self, session_factory, make_resource):
        r = make_resource("Old")
        created = r.created_at
        copy = Resource(id=r.id, name="Copied")
        updated = ResourcesCRUD(session_factory).update(copy)
        assert updated is r
        assert r.name == "Copied"
        assert r.created_at == created

    def test_update_does_not_touch_archive_flag(self, session_factory, make_resource):
        r = make_resource("Kept", archived=True)
        ResourcesCRUD(session_factory).update(Resource(id=r.id, name="Kept 2", is_archived=False))
        assert r.is_archived is True

    def test_update_missing_raises_not_found(self, session_factory):
        with pytest.raises(NotFoundError):
            ResourcesCRUD(session_factory).update(Resource(id=777, name="Ghost"))

    def test_update_with_missing_foreign_key_rejected(self, session_factory, make_resource, make_unit):
        crud = BalancesCRUD(session_factory)
        b = crud.create(Balance(resource_id=make_resource().id, unit_id=make_unit().id, quantity=1))
        b.unit_id = 31337
        with pytest.raises(ValidationError):
            crud.update(b)


# ── delete / detach ───────────────────────────────────────────────────────────

class TestDelete:

    def test_delete_missing_returns_false(self, session_factory):
        assert UnitsCRUD(session_factory).hard_delete(404) is False

    def test_hard_delete_removes_row(self, session_factory, make_unit):
        u = make_unit()
        crud = UnitsCRUD(session_factory)
        assert crud.hard_delete(u.id) is True
        assert crud.get_by_id(u.id) is None

    def test_delete_where(self, session_factory, make_unit):
        make_unit("a")
        make_unit("b")
        make_unit("c")
        crud = UnitsCRUD(session_factory)
        assert crud.delete_where(Unit.name.in_(["a", "b"])) == 2
        assert crud.get_count() == 1

    def test_detach_stops_tracking(self, db_session, session_factory, make_resource):
        r = make_resource("Tracked")
        crud = ResourcesCRUD(session_factory)
        crud.detach(r)
        r.name = "Changed in memory"
        db_session.flush()
        db_session.expire_all()
        assert crud.get_by_id(r.id).name == "Tracked"

    def test_detach_transient_is_noop(self, session_factory):
        ResourcesCRUD(session_factory).detach(Resource(name="Never saved"))


# ── session ownership ─────────────────────────────────────────────────────────

class TestOwnedSessions:

    def test_owned_session_commits(self, owned_session_factory):
        crud = ResourcesCRUD(owned_session_factory)
        r = crud.create(Resource(name="Committed"))
        assert ResourcesCRUD(owned_session_factory).get_by_id(r.id).name == "Committed"

    def test_failed_call_leaves_nothing_behind(self, owned_session_factory):
        crud = UnitsCRUD(owned_session_factory)
        with pytest.raises(ValidationError):
            crud.query_by(SearchModel(filters={"weight": 1}))
        assert crud.get_count() == 0

    def test_default_factory_is_process_sessionmaker(self, owned_session_factory):
        with patch("database.models.base.get_session_local", return_value=owned_session_factory):
            r = ResourcesCRUD().create(Resource(name="Default"))
            assert ResourcesCRUD().get_by_id(r.id) is not None
