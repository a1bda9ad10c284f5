"""Tests for InMemoryDBClient implementation."""

import pytest

from taskboard.core.db_client import DatabaseError, RecordNotFoundError, any_of_filter


@pytest.mark.unit
class TestInMemoryDBClient:
    """Test suite for InMemoryDBClient."""

    async def test_create_record(self, in_memory_db):
        """Test creating a record."""
        record = await in_memory_db.create_record(collection="tasks", data={"title": "Ship report"})

        assert record["id"] is not None
        assert record["title"] == "Ship report"
        assert "created" in record
        assert "updated" in record
        assert in_memory_db.operations == [("create", "tasks", record["id"])]

    async def test_create_record_invalid_data(self, in_memory_db):
        """Test creating a record with invalid data raises error."""
        with pytest.raises(DatabaseError, match="Data must be a dictionary"):
            await in_memory_db.create_record(collection="tasks", data="invalid")

    async def test_get_record_not_found(self, in_memory_db):
        """Test getting a non-existent record raises error."""
        with pytest.raises(RecordNotFoundError, match="Record not found"):
            await in_memory_db.get_record(collection="tasks", record_id="nonexistent")

    async def test_update_and_delete(self, in_memory_db):
        """Test updating then deleting a record."""
        created = await in_memory_db.create_record(collection="tasks", data={"title": "Original"})

        updated = await in_memory_db.update_record(
            collection="tasks", record_id=created["id"], data={"title": "Renamed"}
        )
        await in_memory_db.delete_record(collection="tasks", record_id=created["id"])

        assert updated["title"] == "Renamed"
        with pytest.raises(RecordNotFoundError):
            await in_memory_db.get_record(collection="tasks", record_id=created["id"])

    async def test_list_records_with_and_filter(self, in_memory_db):
        """Test filtering records with AND conditions."""
        await in_memory_db.create_record(collection="task_assignments", data={"task_id": "1", "assignee_id": "a"})
        await in_memory_db.create_record(collection="task_assignments", data={"task_id": "1", "assignee_id": "b"})
        await in_memory_db.create_record(collection="task_assignments", data={"task_id": "2", "assignee_id": "a"})

        records = await in_memory_db.list_records(
            collection="task_assignments", filter_query='task_id = "1" && assignee_id = "a"'
        )

        assert len(records) == 1

    async def test_list_records_with_or_group(self, in_memory_db):
        """Test filtering records with a parenthesized OR group."""
        for task_id in ("1", "2", "3"):
            await in_memory_db.create_record(collection="task_assignments", data={"task_id": task_id})

        records = await in_memory_db.list_records(
            collection="task_assignments", filter_query=any_of_filter("task_id", ["1", "3"])
        )

        assert sorted(r["task_id"] for r in records) == ["1", "3"]

    async def test_list_records_with_boolean_filter(self, in_memory_db):
        """Test booleans compare the way SQLite stores them."""
        await in_memory_db.create_record(collection="task_categories", data={"name": "Errands", "is_active": True})
        await in_memory_db.create_record(collection="task_categories", data={"name": "Archive", "is_active": False})

        records = await in_memory_db.list_records(collection="task_categories", filter_query='is_active = "1"')

        assert [r["name"] for r in records] == ["Errands"]

    async def test_list_records_with_contains_and_not_equal(self, in_memory_db):
        """Test ~ and != operators."""
        await in_memory_db.create_record(collection="profiles", data={"email": "alice@gmail.com", "role": "user"})
        await in_memory_db.create_record(collection="profiles", data={"email": "bob@yahoo.com", "role": "admin"})

        gmail = await in_memory_db.list_records(collection="profiles", filter_query='email ~ "GMAIL"')
        not_admin = await in_memory_db.list_records(collection="profiles", filter_query='role != "admin"')

        assert [r["email"] for r in gmail] == ["alice@gmail.com"]
        assert [r["email"] for r in not_admin] == ["alice@gmail.com"]

    async def test_list_records_invalid_filter(self, in_memory_db):
        """Test that invalid filter syntax raises error."""
        await in_memory_db.create_record(collection="tasks", data={"title": "Test"})

        with pytest.raises(DatabaseError, match="Invalid filter syntax"):
            await in_memory_db.list_records(collection="tasks", filter_query="invalid filter")

    async def test_sort_puts_missing_values_first_ascending(self, in_memory_db):
        """Test sorting with a missing field value."""
        await in_memory_db.create_record(collection="tasks", data={"title": "b", "created_at": "2024-03-02"})
        await in_memory_db.create_record(collection="tasks", data={"title": "none"})
        await in_memory_db.create_record(collection="tasks", data={"title": "a", "created_at": "2024-03-01"})

        ascending = await in_memory_db.list_records(collection="tasks", sort="+created_at")
        descending = await in_memory_db.list_records(collection="tasks", sort="-created_at")

        assert [r["title"] for r in ascending] == ["none", "a", "b"]
        assert [r["title"] for r in descending] == ["b", "a", "none"]

    async def test_get_first_record_no_match(self, in_memory_db):
        """Test getting first record when no match exists."""
        await in_memory_db.create_record(collection="profiles", data={"email": "alice@example.com"})

        assert await in_memory_db.get_first_record(collection="profiles", filter_query='email = "bob"') is None

    async def test_record_modifications_dont_affect_storage(self, in_memory_db):
        """Test that modifying returned records doesn't affect stored data."""
        created = await in_memory_db.create_record(collection="tasks", data={"title": "Ship report"})

        created["title"] = "Modified"

        fetched = await in_memory_db.get_record(collection="tasks", record_id=created["id"])
        assert fetched["title"] == "Ship report"
