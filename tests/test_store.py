"""
tests/test_store.py

Group persistence backends.
"""

import json
import os

import pytest

from expense_splitter.errors import StoreError, ValidationError
from expense_splitter.group import add_expense, new_group
from expense_splitter.store import (
    JsonFileGroupStore,
    MemoryGroupStore,
    create_store,
    record_key,
)


@pytest.fixture
def state():
    group = new_group(["Alex", "Jordan"])
    return add_expense(group, "Pizza", 24, "Jordan", ["Alex", "Jordan"], expense_id=1700000000000)


@pytest.fixture(params=["memory", "file"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryGroupStore()
    return JsonFileGroupStore(tmp_path)


class TestGroupStores:

    def test_unknown_group_loads_none(self, any_store):
        assert any_store.load("group_1_missing") is None

    def test_save_then_load(self, any_store, state):
        any_store.save("group_1_abc", state)
        assert any_store.load("group_1_abc") == state

    def test_last_writer_wins(self, any_store, state):
        any_store.save("group_1_abc", state)
        any_store.save("group_1_abc", new_group())
        assert any_store.load("group_1_abc") == new_group()

    def test_groups_are_separate(self, any_store, state):
        any_store.save("group_1_abc", state)
        any_store.save("group_2_def", new_group())
        assert any_store.load("group_1_abc") == state


class TestJsonFileGroupStore:

    def test_record_layout(self, tmp_path, state):
        store = JsonFileGroupStore(tmp_path)
        store.save("group_1_abc", state)

        path = tmp_path / "expenses_group_1_abc.json"
        record = json.loads(path.read_text(encoding="utf-8"))
        assert record["people"] == ["Alex", "Jordan"]
        assert record["expenses"] == [{
            "id": 1700000000000,
            "description": "Pizza",
            "amount": 24.0,
            "paidBy": "Jordan",
            "splitAmong": ["Alex", "Jordan"],
        }]
        assert "lastUpdated" in record

    def test_no_temp_files_left(self, tmp_path, state):
        store = JsonFileGroupStore(tmp_path)
        store.save("group_1_abc", state)
        assert os.listdir(tmp_path) == ["expenses_group_1_abc.json"]

    def test_missing_fields_fall_back(self, tmp_path):
        (tmp_path / "expenses_group_1_abc.json").write_text("{}", encoding="utf-8")
        assert JsonFileGroupStore(tmp_path).load("group_1_abc") == new_group()

    def test_corrupt_record(self, tmp_path):
        (tmp_path / "expenses_group_1_abc.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            JsonFileGroupStore(tmp_path).load("group_1_abc")

    def test_bad_expense_in_record(self, tmp_path):
        record = {"people": ["A", "B"], "expenses": [{"amount": -1, "paidBy": "A", "splitAmong": ["B"]}]}
        (tmp_path / "expenses_group_1_abc.json").write_text(json.dumps(record), encoding="utf-8")
        with pytest.raises(StoreError):
            JsonFileGroupStore(tmp_path).load("group_1_abc")

    @pytest.mark.parametrize("group_id", ["../etc", "a/b", "", "group 1"])
    def test_rejects_unsafe_group_ids(self, tmp_path, group_id):
        with pytest.raises(ValidationError):
            JsonFileGroupStore(tmp_path).load(group_id)


class TestCreateStore:

    def test_memory(self):
        assert isinstance(create_store("memory"), MemoryGroupStore)

    def test_file(self, tmp_path):
        store = create_store("file", str(tmp_path / "groups"))
        assert isinstance(store, JsonFileGroupStore)
        assert os.path.isdir(tmp_path / "groups")

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_store("redis")


def test_record_key():
    assert record_key("group_1_abc") == "expenses_group_1_abc"


def test_bad_people_in_record(tmp_path):
    (tmp_path / "expenses_group_1_abc.json").write_text('{"people": "AB"}', encoding="utf-8")
    with pytest.raises(StoreError):
        JsonFileGroupStore(tmp_path).load("group_1_abc")
