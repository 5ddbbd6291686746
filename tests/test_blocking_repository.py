"""Tests for the blocking repository facade."""

import pytest
from bson import ObjectId

from mongorepository.db.repositories import BlockingRepository
from mongorepository.exceptions import EntityNotFoundError, InvalidIdentifierError
from tests.helpers.entities import Person


@pytest.fixture
def blocking(people):
    """Blocking facade over the fake-collection Person repository."""
    repo = BlockingRepository(people)
    yield repo
    repo.close()


class TestBlockingRepository:
    """Every operation returns its result directly."""

    def test_add_and_get_by_id(self, blocking):
        person = blocking.add(Person(name="Ada", age=36))

        assert blocking.get_by_id(person.id) == person

    def test_update_and_count(self, blocking):
        person = blocking.update(Person(name="Ada", age=36))
        person.age = 37
        blocking.update(person)

        assert blocking.count() == 1
        assert blocking.get_by_id(person.id).age == 37

    def test_bulk_operations(self, blocking):
        batch = blocking.add_many([Person(name="Ada"), Person(name="Grace")])
        for person in batch:
            person.age = 50
        blocking.update_many(batch)

        assert blocking.exists({"age": 50}) is True
        assert blocking.to_list(blocking.where({"age": 50})) == batch

    def test_deletes(self, blocking):
        ada, grace, linus = blocking.add_many(
            [
                Person(name="Ada", age=20),
                Person(name="Grace", age=30),
                Person(name="Linus", age=40),
            ]
        )

        assert blocking.delete(ada.id) == 1
        assert blocking.delete(str(ObjectId())) == 0
        assert blocking.delete_entity(grace) == 1
        assert blocking.delete_where({"age": {"$gt": 25}}) == 1
        assert blocking.delete_all() == 0
        assert blocking.count() == 0

    def test_errors_propagate(self, blocking):
        with pytest.raises(EntityNotFoundError):
            blocking.get_by_id(str(ObjectId()))
        with pytest.raises(InvalidIdentifierError):
            blocking.delete("nope")

    def test_iteration_is_lazy_and_restartable(self, blocking, people_collection):
        blocking.add_many(Person(name=f"p{i}", age=i) for i in range(3))
        people_collection.calls.clear()

        iterator = iter(blocking)
        assert people_collection.calls == []

        assert next(iterator).name == "p0"
        assert [p.name for p in blocking] == ["p0", "p1", "p2"]
        iterator.close()

    def test_iterate_query(self, blocking):
        blocking.add_many(Person(name=f"p{i}", age=i) for i in range(3))

        query = blocking.where({"age": {"$gte": 1}})

        names = [p.name for p in blocking.iterate(query)]

        assert names == ["p1", "p2"]

    def test_accessors(self, blocking, people):
        assert blocking.repository is people
        assert blocking.collection is people.collection
        assert blocking.collection_name == "Person"
        assert blocking.query().element_type is Person


def test_context_manager_closes_loop(people):
    with BlockingRepository(people) as repo:
        repo.add(Person(name="Ada"))

    with pytest.raises(RuntimeError):
        repo.count()
