# -*- coding: utf-8 -*-
"""
tests/test_archivable_crud.py
===============================
Soft delete / archive / unarchive on the reference-data repositories.
"""
import pytest
from database.crud.clients_crud import ClientsCRUD
from database.crud.resources_crud import ResourcesCRUD
from database.crud.search import SearchModel


class TestArchive:

    def test_delete_is_soft(self, session_factory, make_resource):
        r = make_resource()
        crud = ResourcesCRUD(session_factory)
        assert crud.delete(r.id) is True
        stored = crud.get_by_id(r.id)
        assert stored is not None
        assert stored.is_archived is True
        assert stored.archived_at is not None

    def test_archive_missing_returns_false(self, session_factory):
        assert ResourcesCRUD(session_factory).archive(555) is False
        assert ResourcesCRUD(session_factory).unarchive(555) is False

    def test_archive_is_idempotent(self, session_factory, make_resource):
        r = make_resource()
        crud = ResourcesCRUD(session_factory)
        crud.archive(r.id)
        first = crud.get_by_id(r.id).archived_at
        assert crud.archive(r.id) is True
        assert crud.get_by_id(r.id).archived_at == first

    def test_unarchive_clears_timestamp(self, session_factory, make_client):
        c = make_client(archived=True)
        crud = ClientsCRUD(session_factory)
        assert crud.unarchive(c.id) is True
        stored = crud.get_by_id(c.id)
        assert stored.is_archived is False
        assert stored.archived_at is None
        assert stored.updated_at is not None

    def test_active_predicate(self, session_factory, make_resource):
        make_resource("Live")
        make_resource("Gone", archived=True)
        crud = ResourcesCRUD(session_factory)
        assert crud.get_count(crud.active()) == 1
        assert crud.get_first_or_default(crud.active()).name == "Live"

    def test_archived_rows_still_listed_without_filter(self, session_factory, make_resource):
        make_resource("Live")
        make_resource("Gone", archived=True)
        _, total = ResourcesCRUD(session_factory).query_by(SearchModel())
        assert total == 2

    def test_search_matches_client_address(self, session_factory, make_client):
        make_client("Acme", address="Harbour road 5")
        make_client("Globex", address="Hill street 2")
        items, total = ClientsCRUD(session_factory).query_by(SearchModel(search_term="harbour"))
        assert total == 1
        assert items[0].name == "Acme"

    def test_hard_delete(self, session_factory, make_resource):
        r = make_resource()
        crud = ResourcesCRUD(session_factory)
        assert crud.hard_delete(r.id) is True
        assert crud.get_by_id(r.id) is None

    @pytest.mark.parametrize("field", ["is_archived", "archived_at"])
    def test_archive_fields_are_protected_from_update(self, field):
        assert field in ResourcesCRUD.protected_fields
