"""Tests for the generic ResourceService through the customer, note and user services.

Covers listing (where filters, keyword search, ordering, view scope,
pagination, relation selection), lookups and the write operations.
"""

import pytest

from agentdesk.auth.security import verify_password
from agentdesk.auth.service import AuthService
from agentdesk.customers.models import Customer, CustomerNote
from agentdesk.customers.service import CustomerNoteService, CustomerService
from agentdesk.exceptions import InvalidDateError
from agentdesk.resources.pagination import Page
from agentdesk.resources.service import ResourceService, keyword_tokens, parse_date
from agentdesk.users.models import ROLE_AGENT, ROLE_USER, User
from agentdesk.users.service import AgentService, UserService


def _names(rows):
    return [row.name for row in rows]


@pytest.fixture
def service(db_session, settings):
    return CustomerService(db_session, settings=settings)


@pytest.fixture
def note_service(db_session, settings):
    return CustomerNoteService(db_session, settings=settings)


# =============================================================================
# Helpers
# =============================================================================


class TestHelpers:
    def test_keyword_tokens_collapse_whitespace(self):
        assert keyword_tokens("  loyal   customer ") == ["loyal", "customer"]
        assert keyword_tokens(None) == []

    def test_parse_date(self):
        assert parse_date(None) is None
        assert parse_date("") is None
        assert parse_date("2024-02-15").isoformat() == "2024-02-15"

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(InvalidDateError):
            parse_date("15/02/2024")
        with pytest.raises(InvalidDateError):
            parse_date(20240215)

    def test_service_requires_model(self, db_session):
        class Broken(ResourceService):
            pass

        with pytest.raises(TypeError):
            Broken(db_session)


# =============================================================================
# list: where filters and default ordering
# =============================================================================


class TestListFilters:
    def test_default_listing_orders_by_name(self, service, customers):
        assert _names(service.list()) == ["Alpha Foods", "Beta Books", "Gamma Garage"]

    def test_where_on_column(self, service, customers, agent):
        rows = service.list({"agent_id": str(agent.id)})
        assert _names(rows) == ["Alpha Foods"]

    def test_unknown_fields_are_ignored(self, service, customers):
        rows = service.list({"favourite_colour": "blue", "name": ""})
        assert len(rows) == 3

    def test_uncoercible_value_is_dropped(self, db_session, settings, agent, second_agent):
        users = UserService(db_session, settings=settings)
        assert len(users.list({"is_active": "maybe"})) == 2
        assert users.list({"is_active": "false"}) == []

    def test_hidden_column_is_not_a_filter(self, db_session, settings, agent, second_agent):
        users = UserService(db_session, settings=settings)
        assert "password_hash" not in users.valid_query_fields()
        assert len(users.list({"password_hash": agent.password_hash})) == 2
        assert len(users.list({"password_hash": "not-the-hash"})) == 2

    def test_hidden_column_is_not_an_ordering(self, db_session, settings, agent, second_agent):
        users = UserService(db_session, settings=settings)
        rows = users.list({"order_field": "password_hash", "ranking": "desc"})
        assert _names(rows) == ["Amara Okafor", "Bruno Tavares"]

    def test_unassigned_filter(self, service, customers):
        assert _names(service.list({"unassigned": "true"})) == ["Gamma Garage"]
        assert len(service.list({"unassigned": "no"})) == 3


# =============================================================================
# list: keyword search
# =============================================================================


class TestKeywordSearch:
    def test_matches_own_fields_case_insensitive(self, service, customers):
        assert _names(service.list({"keyword": "BETA"})) == ["Beta Books"]
        assert _names(service.list({"keyword": "555-0303"})) == ["Gamma Garage"]

    def test_matches_note_bodies(self, service, customers, notes):
        assert _names(service.list({"keyword": "invoices"})) == ["Beta Books"]

    def test_every_token_must_match_one_field(self, service, customers, notes):
        assert _names(service.list({"keyword": "loyal 2019"})) == ["Gamma Garage"]
        assert service.list({"keyword": "loyal invoices"}) == []

    def test_empty_keyword_matches_everything(self, service, customers):
        assert len(service.list({"keyword": ""})) == 3
        assert len(service.list({"keyword": "   "})) == 3

    def test_wildcards_are_literal(self, service, customers):
        assert service.list({"keyword": "%"}) == []
        assert service.list({"keyword": "_"}) == []

    def test_search_without_relation_search(self, note_service, notes):
        rows = note_service.list({"keyword": "spring"})
        assert [row.body for row in rows] == ["Renewal due in spring"]

    def test_search_on_relationship_ors_own_fields(self, service, customers, notes):
        query = service.base_query()
        rows = service.search_on_relationship(query, "gamma", "notes", ["body"]).all()
        assert _names(rows) == ["Gamma Garage"]

        rows = service.search_on_relationship(query, "spring", "notes", ["body"]).all()
        assert _names(rows) == ["Beta Books"]

    def test_search_on_unknown_relationship_uses_own_fields(self, service, customers):
        query = service.base_query()
        rows = service.search_on_relationship(query, "alpha", "invoices", ["total"]).all()
        assert _names(rows) == ["Alpha Foods"]


# =============================================================================
# list: date range
# =============================================================================


class TestDateRange:
    def test_end_date_includes_late_evening(self, service, customers):
        rows = service.list({"start_date": "2024-02-01", "end_date": "2024-03-20"})
        assert _names(rows) == ["Beta Books", "Gamma Garage"]

    def test_only_start_date(self, service, customers):
        assert _names(service.list({"start_date": "2024-02-16"})) == ["Gamma Garage"]

    def test_only_end_date(self, service, customers):
        rows = service.list({"end_date": "2024-02-15"})
        assert _names(rows) == ["Alpha Foods", "Beta Books"]

    def test_invalid_date_raises(self, service, customers):
        with pytest.raises(InvalidDateError):
            service.list({"start_date": "2024-13-45"})

    def test_filter_by_date_range_directly(self, service, customers):
        query = service.filter_by_date_range(service.base_query(), "2024-01-10", "2024-01-10")
        assert _names(query.all()) == ["Alpha Foods"]


# =============================================================================
# list: ordering
# =============================================================================


class TestOrdering:
    def test_column_ordering(self, service, customers):
        rows = service.list({"order_field": "created_at", "ranking": "asc"})
        assert _names(rows) == ["Alpha Foods", "Beta Books", "Gamma Garage"]

        rows = service.list({"order_field": "created_at"})
        assert _names(rows) == ["Gamma Garage", "Beta Books", "Alpha Foods"]

    def test_virtual_notes_count(self, service, customers, notes):
        rows = service.list({"order_field": "notes_count", "ranking": "desc"})
        assert _names(rows) == ["Beta Books", "Gamma Garage", "Alpha Foods"]

    def test_virtual_agent_name(self, service, customers):
        rows = service.list({"order_field": "agent_name", "ranking": "desc"})
        assert _names(rows) == ["Beta Books", "Alpha Foods", "Gamma Garage"]

    def test_unknown_order_field_is_a_no_op(self, service, customers):
        rows = service.list({"order_field": "shoe_size", "ranking": "desc"})
        assert _names(rows) == ["Alpha Foods", "Beta Books", "Gamma Garage"]

    def test_customer_count_ordering(self, db_session, settings, service, customers):
        service.delete(customers[0].id)
        users = UserService(db_session, settings=settings)
        rows = users.list({"order_field": "customer_count", "ranking": "desc"})
        assert _names(rows) == ["Bruno Tavares", "Amara Okafor"]


# =============================================================================
# list: view scope and pagination
# =============================================================================


class TestViewScope:
    def test_deleted_rows_hidden_by_default(self, service, customers):
        service.delete(customers[0].id)
        assert _names(service.list()) == ["Beta Books", "Gamma Garage"]

    def test_view_deleted(self, service, customers):
        service.delete(customers[0].id)
        assert _names(service.list({"view_by": "deleted"})) == ["Alpha Foods"]

    def test_view_all(self, service, customers):
        service.delete(customers[0].id)
        assert len(service.list({"view_by": "all"})) == 3

    def test_unknown_view_by_means_active(self, service, customers):
        service.delete(customers[0].id)
        assert len(service.list({"view_by": "everything"})) == 2


class TestPagination:
    @pytest.fixture
    def many_notes(self, db_session, customers):
        rows = [
            CustomerNote(customer_id=customers[0].id, body=f"Call log {i}")
            for i in range(12)
        ]
        db_session.add_all(rows)
        db_session.flush()
        return rows

    def test_unpaginated_returns_list(self, note_service, many_notes):
        result = note_service.list()
        assert isinstance(result, list)
        assert len(result) == 12

    def test_custom_page_size(self, note_service, many_notes):
        page = note_service.list({"paginate": "true", "per_page": "5", "page": "3"})
        assert isinstance(page, Page)
        assert page.total == 12
        assert page.per_page == 5
        assert page.last_page == 3
        assert len(page.items) == 2

    def test_default_page_size(self, note_service, many_notes):
        page = note_service.list({"paginate": True})
        assert page.per_page == 20
        assert len(page.items) == 12
        assert not page.has_more

    def test_page_size_is_capped(self, note_service, many_notes):
        page = note_service.list({"paginate": "true", "per_page": "1000"})
        assert page.per_page == 100


# =============================================================================
# Relations
# =============================================================================


class TestRelations:
    def test_undeclared_relationship_is_dropped(self, db_session, settings):
        users = UserService(db_session, settings=settings)
        assert users.relations_for({"relations": "access_tokens"}) == []
        assert users.relations_for({"relations": "customers.agent.access_tokens"}) == []
        assert users.relations_for({"relations": "customers.agent"}) == ["customers.agent"]

    def test_undeclared_relationship_in_configuration(self, db_session, settings):
        users = UserService(db_session, relations=["access_tokens"], settings=settings)
        assert users.relations == ()
        narrowed = UserService(db_session, settings=settings).with_relations(
            ["access_tokens", "customers"]
        )
        assert narrowed.relations == ("customers",)

    def test_access_tokens_never_serialized(self, db_session, settings, agent):
        AuthService.issue_token(db_session, agent)
        users = UserService(db_session, settings=settings)
        data = {"relations": "access_tokens"}
        rows = users.list(data)
        serialized = rows[0].to_dict(users.relations_for(data))
        assert "access_tokens" not in serialized

        assert len(agent.access_tokens) == 1
        assert "access_tokens" not in agent.to_dict(["access_tokens"])

    def test_declared_relations_by_default(self, service):
        assert service.relations_for({}) == ["agent", "notes"]

    def test_relations_key(self, service):
        assert service.relations_for({"relations": "notes.customer,bogus"}) == ["notes.customer"]

    def test_exempted_relations_take_precedence(self, service):
        data = {"relations": "notes", "exempted_relations": "notes"}
        assert service.relations_for(data) == ["agent"]

    def test_listing_serializes_requested_relations(self, service, customers, notes):
        rows = service.list({"relations": "notes", "name": "Beta Books"})
        data = rows[0].to_dict(service.relations_for({"relations": "notes"}))
        assert [n["body"] for n in data["notes"]] == [
            "Prefers invoices by email",
            "Renewal due in spring",
        ]
        assert "agent" not in data

    def test_without_relations_is_a_copy(self, service):
        bare = service.without_relations()
        assert bare is not service
        assert bare.relations_for({}) == []
        assert service.relations_for({}) == ["agent", "notes"]

    def test_with_relations_is_a_copy(self, service):
        narrowed = service.with_relations(["agent"])
        assert narrowed.relations == ("agent",)
        assert service.relations == ("agent", "notes")
        assert narrowed.load_with_relations


# =============================================================================
# Lookups
# =============================================================================


class TestLookups:
    def test_find_by_primary_key(self, service, customers):
        assert service.find(customers[1].id).name == "Beta Books"

    def test_find_by_column(self, service, customers):
        assert service.find("desk@gamma.example", "email").name == "Gamma Garage"

    def test_find_unknown_column_returns_none(self, service, customers):
        assert service.find("x", "not_a_column") is None

    def test_find_missing_returns_none(self, service, customers):
        assert service.find(999_999) is None

    def test_find_skips_deleted_unless_asked(self, service, customers):
        service.delete(customers[0].id)
        assert service.find(customers[0].id) is None
        assert service.find(customers[0].id, include_deleted=True) is not None

    def test_show_loads_relations(self, service, customers, notes):
        customer = service.show(customers[1].id)
        data = customer.to_dict(service.relations)
        assert data["agent"]["name"] == "Bruno Tavares"
        assert len(data["notes"]) == 2
        assert "password_hash" not in data["agent"]


# =============================================================================
# store / update / delete / restore / can_delete
# =============================================================================


class TestStore:
    def test_store_keeps_only_columns(self, service):
        customer = service.store({"name": "Delta Dairy", "favourite_colour": "blue"})
        assert customer.id is not None
        assert customer.name == "Delta Dairy"
        assert customer.created_at is not None

    def test_store_without_valid_fields(self, service):
        assert service.store({}) is None
        assert service.store({"favourite_colour": "blue"}) is None
        assert service.store(None) is None

    def test_user_password_is_hashed(self, db_session, settings):
        users = UserService(db_session, settings=settings)
        user = users.store({
            "name": "Cleo Park",
            "username": "cleo",
            "email": "cleo@example.com",
            "password": "s3cret-pass",
            "password_hash": "forged",
            "role": "overlord",
        })
        assert verify_password("s3cret-pass", user.password_hash)
        assert user.role == ROLE_USER
        assert "password_hash" not in user.to_dict()

    def test_agent_service_forces_role(self, db_session, settings, agent):
        agents = AgentService(db_session, settings=settings)
        created = agents.store({
            "name": "Dara Quinn",
            "username": "dara",
            "email": "dara@example.com",
            "role": "admin",
        })
        assert created.role == ROLE_AGENT

    def test_agent_service_lists_only_agents(self, db_session, settings, agent):
        db_session.add(User(name="Plain User", username="plain", email="plain@example.com"))
        db_session.flush()
        agents = AgentService(db_session, settings=settings)
        assert _names(agents.list()) == ["Amara Okafor"]


class TestUpdate:
    def test_update_merges_and_returns_fresh_state(self, service, customers, notes):
        original_id = customers[1].id
        updated = service.update(original_id, {"name": "Beta Books Ltd", "id": 4242})
        assert updated.id == original_id
        assert updated.name == "Beta Books Ltd"
        assert updated.email == "shop@beta.example"
        assert len(updated.to_dict(service.relations)["notes"]) == 2

    def test_update_missing_returns_none(self, service):
        assert service.update(999_999, {"name": "Nobody"}) is None

    def test_update_with_nothing_valid_is_a_no_op(self, service, customers):
        updated = service.update(customers[0].id, {"favourite_colour": "blue"})
        assert updated.name == "Alpha Foods"

    def test_update_hashes_new_password(self, db_session, settings, agent):
        users = UserService(db_session, settings=settings)
        updated = users.update(agent.id, {"password": "brand-new-pass"})
        assert verify_password("brand-new-pass", updated.password_hash)


class TestDelete:
    def test_soft_delete(self, db_session, service, customers):
        assert service.delete(customers[0].id) is True
        row = db_session.get(Customer, customers[0].id)
        assert row is not None
        assert row.deleted_at is not None

    def test_delete_missing(self, service):
        assert service.delete(999_999) is False

    def test_delete_twice(self, service, customers):
        assert service.delete(customers[0].id) is True
        assert service.delete(customers[0].id) is False

    def test_hard_delete_without_deleted_at(self, db_session, note_service, notes):
        note_id = notes[0].id
        assert note_service.delete(note_id) is True
        assert db_session.get(CustomerNote, note_id) is None


class TestRestore:
    def test_restore_soft_deleted(self, service, customers):
        service.delete(customers[0].id)
        restored = service.restore(customers[0].id)
        assert restored is not None
        assert restored.deleted_at is None
        assert "Alpha Foods" in _names(service.list())

    def test_restore_active_record(self, service, customers):
        assert service.restore(customers[0].id) is None

    def test_restore_missing(self, service):
        assert service.restore(999_999) is None

    def test_restore_hard_delete_resource(self, note_service, notes):
        assert note_service.restore(notes[0].id) is None


class TestCanDelete:
    def test_agent_with_active_customer(self, db_session, settings, agent, customers):
        users = UserService(db_session, settings=settings)
        assert users.can_delete(agent.id) is False

    def test_agent_whose_customers_are_deleted(
        self, db_session, settings, service, second_agent, customers
    ):
        service.delete(customers[1].id)
        users = UserService(db_session, settings=settings)
        assert users.can_delete(second_agent.id) is True

    def test_default_rule_allows_delete(self, service, customers):
        assert service.can_delete(customers[0].id) is True

    def test_missing_record(self, service):
        assert service.can_delete(999_999) is None
