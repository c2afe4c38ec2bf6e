import pytest

from constants import IdentifierBounds
from exceptions import (
    ConflictError,
    DatabaseError,
    IdentifierExhaustedError,
    InvalidArgumentError,
    NotFoundError,
)
from repositories.customer_repository import CustomerRepository
from repositories.event_repository import EventRepository
from repositories.backing_store import InMemoryBackingStore
from schemas import Customer, Event


@pytest.fixture
def repo(backing_store):
    return CustomerRepository(backing_store)


def _names(customers):
    return [(c.id, c.name) for c in customers]


class TestSave:
    def test_new_entities_get_sequential_ids(self, repo):
        alice = repo.save(Customer(name="Alice"))
        bob = repo.save(Customer(name="Bob"))

        assert alice.id == 1
        assert alice.name == "Alice"
        assert bob.id == 2
        assert bob.name == "Bob"

    def test_new_entity_starts_at_version_one(self, repo):
        saved = repo.save(Customer(name="Alice"))
        assert saved.version == 1

    def test_argument_is_not_mutated(self, repo):
        customer = Customer(name="Alice")
        saved = repo.save(customer)

        assert customer.id is None
        assert customer.version is None
        assert saved is not customer

    def test_update_replaces_stored_value(self, repo):
        saved = repo.save(Customer(name="Alice"))
        saved.email = "alice@example.com"

        updated = repo.save(saved)

        assert updated.id == saved.id
        assert updated.version == 2
        assert repo.find_by_id(saved.id).email == "alice@example.com"
        assert repo.count() == 1

    def test_update_of_unknown_id_raises_not_found(self, repo):
        with pytest.raises(NotFoundError) as exc_info:
            repo.save(Customer(id=99, name="Ghost"))

        assert exc_info.value.entity_id == 99
        assert exc_info.value.details == {"entity_type": "customer", "entity_id": 99}
        assert repo.count() == 0

    def test_stale_version_raises_conflict(self, repo):
        saved = repo.save(Customer(name="Alice"))
        repo.save(saved.model_copy(update={"name": "Alicia"}))

        with pytest.raises(ConflictError) as exc_info:
            repo.save(saved.model_copy(update={"name": "Ally"}))

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        assert repo.find_by_id(saved.id).name == "Alicia"

    def test_update_without_version_is_unconditional(self, repo):
        saved = repo.save(Customer(name="Alice"))
        repo.save(saved.model_copy(update={"name": "Alicia"}))

        updated = repo.save(Customer(id=saved.id, name="Ally"))

        assert updated.version == 3
        assert repo.find_by_id(saved.id).name == "Ally"

    def test_stale_version_accepted_when_locking_disabled(self, backing_store):
        repo = CustomerRepository(backing_store, optimistic_locking=False)
        saved = repo.save(Customer(name="Alice"))
        repo.save(saved.model_copy(update={"name": "Alicia"}))

        updated = repo.save(saved.model_copy(update={"name": "Ally"}))

        assert updated.version == 3

    def test_wrong_entity_type_is_invalid(self, repo):
        with pytest.raises(InvalidArgumentError):
            repo.save(Event(name="Concert"))

    @pytest.mark.parametrize("bad_id", [0, -1, 2 ** 63])
    def test_out_of_range_id_is_invalid(self, repo, bad_id):
        with pytest.raises(InvalidArgumentError):
            repo.save(Customer(id=bad_id, name="Alice"))


class TestUpsertPolicy:
    @pytest.fixture
    def upsert_repo(self, backing_store):
        return CustomerRepository(backing_store, upsert_unknown_ids=True)

    def test_unknown_id_is_inserted(self, upsert_repo):
        saved = upsert_repo.save(Customer(id=10, name="Alice"))

        assert saved.id == 10
        assert saved.version == 1
        assert upsert_repo.find_by_id(10).name == "Alice"

    def test_later_inserts_skip_upserted_ids(self, upsert_repo):
        upsert_repo.save(Customer(id=3, name="Carol"))

        new = upsert_repo.save(Customer(name="Dave"))

        assert new.id == 4

    def test_upserted_id_below_sequence_does_not_collide(self, upsert_repo):
        first = upsert_repo.save(Customer(name="Alice"))
        second = upsert_repo.save(Customer(name="Bob"))
        upsert_repo.delete_by_id(first.id)
        upsert_repo.save(Customer(id=first.id, name="Alice again"))

        third = upsert_repo.save(Customer(name="Carol"))

        assert third.id not in (first.id, second.id)
        assert upsert_repo.count() == 3

    def test_insert_after_upserting_max_id_is_rejected(self, upsert_repo):
        upsert_repo.save(Customer(id=IdentifierBounds.MAX, name="Last"))

        with pytest.raises(IdentifierExhaustedError):
            upsert_repo.save(Customer(name="Overflow"))

        assert upsert_repo.find_by_id(IdentifierBounds.MAX).name == "Last"
        assert upsert_repo.count() == 1

    def test_max_id_can_still_be_updated(self, upsert_repo):
        upsert_repo.save(Customer(id=IdentifierBounds.MAX, name="Last"))

        updated = upsert_repo.save(Customer(id=IdentifierBounds.MAX, name="Final", version=1))

        assert updated.version == 2


class TestFind:
    def test_find_by_id_returns_equal_entity(self, repo):
        saved = repo.save(Customer(name="Alice", email="a@example.com"))

        found = repo.find_by_id(saved.id)

        assert found.model_dump() == saved.model_dump()

    def test_find_by_id_missing_returns_none(self, repo):
        assert repo.find_by_id(42) is None

    @pytest.mark.parametrize("bad_id", [-5, 0, True, "1", 1.0, None])
    def test_malformed_id_is_invalid(self, repo, bad_id):
        with pytest.raises(InvalidArgumentError):
            repo.find_by_id(bad_id)

    def test_returned_entities_are_copies(self, repo):
        saved = repo.save(Customer(name="Alice"))

        found = repo.find_by_id(saved.id)
        found.name = "Mallory"

        assert repo.find_by_id(saved.id).name == "Alice"

    def test_find_all_in_insertion_order(self, repo):
        repo.save(Customer(name="Alice"))
        repo.save(Customer(name="Bob"))
        repo.save(Customer(name="Carol"))

        assert _names(repo.find_all()) == [(1, "Alice"), (2, "Bob"), (3, "Carol")]

    def test_find_all_empty(self, repo):
        assert repo.find_all() == []

    def test_find_all_by_id_skips_missing_and_duplicates(self, repo):
        repo.save(Customer(name="Alice"))
        repo.save(Customer(name="Bob"))
        repo.save(Customer(name="Carol"))

        found = repo.find_all_by_id([3, 1, 99, 3])

        assert _names(found) == [(1, "Alice"), (3, "Carol")]

    def test_exists_by_id(self, repo):
        saved = repo.save(Customer(name="Alice"))

        assert repo.exists_by_id(saved.id) is True
        assert repo.exists_by_id(saved.id + 1) is False

    def test_exists_by_id_rejects_malformed_id(self, repo):
        with pytest.raises(InvalidArgumentError):
            repo.exists_by_id(-1)


class TestDelete:
    def test_lifecycle_example(self, repo):
        repo.save(Customer(name="Alice"))
        repo.save(Customer(name="Bob"))
        assert _names(repo.find_all()) == [(1, "Alice"), (2, "Bob")]

        repo.delete_by_id(1)

        assert _names(repo.find_all()) == [(2, "Bob")]
        assert repo.find_by_id(1) is None
        assert repo.exists_by_id(1) is False

    def test_delete_absent_id_is_noop(self, repo):
        repo.save(Customer(name="Alice"))

        repo.delete_by_id(77)
        repo.delete_by_id(77)

        assert repo.count() == 1

    def test_strict_delete_of_absent_id_raises(self, backing_store):
        repo = CustomerRepository(backing_store, strict_delete=True)

        with pytest.raises(NotFoundError):
            repo.delete_by_id(77)

    def test_delete_malformed_id_is_invalid(self, repo):
        with pytest.raises(InvalidArgumentError):
            repo.delete_by_id(0)

    def test_ids_are_not_reused_after_delete(self, repo):
        first = repo.save(Customer(name="Alice"))
        repo.delete_by_id(first.id)

        second = repo.save(Customer(name="Bob"))

        assert second.id == first.id + 1

    def test_update_after_delete_is_not_found(self, repo):
        saved = repo.save(Customer(name="Alice"))
        repo.delete_by_id(saved.id)

        with pytest.raises(NotFoundError):
            repo.save(saved)

    def test_delete_entity(self, repo):
        saved = repo.save(Customer(name="Alice"))

        repo.delete(saved)

        assert repo.count() == 0

    def test_delete_unsaved_entity_is_invalid(self, repo):
        with pytest.raises(InvalidArgumentError):
            repo.delete(Customer(name="Alice"))

    def test_delete_all_keeps_sequence(self, repo):
        repo.save_all([Customer(name="Alice"), Customer(name="Bob")])

        repo.delete_all()

        assert repo.find_all() == []
        assert repo.save(Customer(name="Carol")).id == 3


class TestCount:
    def test_count_tracks_live_entities(self, repo):
        saved = repo.save_all([Customer(name=n) for n in ("Alice", "Bob", "Carol")])
        repo.delete_by_id(saved[1].id)

        assert repo.count() == 2
        assert len(repo.find_all()) == repo.count()


class TestSaveAll:
    def test_returns_saved_copies_in_order(self, repo):
        saved = repo.save_all([Customer(name="Alice"), Customer(name="Bob")])

        assert _names(saved) == [(1, "Alice"), (2, "Bob")]

    def test_stops_at_first_failure(self, repo):
        with pytest.raises(NotFoundError):
            repo.save_all([Customer(name="Alice"), Customer(id=50, name="Ghost"), Customer(name="Bob")])

        assert _names(repo.find_all()) == [(1, "Alice")]


class TestEventRepository:
    def test_round_trips_event_fields(self, session_factory):
        from datetime import datetime
        from repositories.sql_backing_store import SqlAlchemyBackingStore

        repo = EventRepository(SqlAlchemyBackingStore(session_factory, "event"))
        starts_at = datetime(2026, 5, 1, 19, 30)

        saved = repo.save(Event(name="Concert", venue="Arena", total_capacity=500, starts_at=starts_at))
        found = repo.find_by_id(saved.id)

        assert found.venue == "Arena"
        assert found.total_capacity == 500
        assert found.starts_at == starts_at

    def test_entity_types_have_independent_sequences(self, session_factory):
        from repositories.sql_backing_store import SqlAlchemyBackingStore

        customers = CustomerRepository(SqlAlchemyBackingStore(session_factory, "customer"))
        events = EventRepository(SqlAlchemyBackingStore(session_factory, "event"))

        customers.save(Customer(name="Alice"))
        customers.save(Customer(name="Bob"))
        event = events.save(Event(name="Concert"))

        assert event.id == 1
        assert events.count() == 1
        assert customers.count() == 2


class TestCorruptPayload:
    def test_undecodable_record_raises_database_error(self):
        store = InMemoryBackingStore()
        store.put(1, b'{"name": ""}')
        repo = CustomerRepository(store)

        with pytest.raises(DatabaseError) as exc_info:
            repo.find_by_id(1)

        assert exc_info.value.details == {"operation": "decode"}


class TestConstruction:
    def test_lock_stripes_must_be_positive(self):
        with pytest.raises(InvalidArgumentError):
            CustomerRepository(InMemoryBackingStore(), lock_stripes=0)
