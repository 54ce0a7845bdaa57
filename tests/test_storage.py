"""Tests for the in-memory and JSON-file repositories."""

from __future__ import annotations

import pytest

from promptweave.storage import InMemoryRepository, JsonFileRepository


@pytest.fixture(params=["memory", "json"])
def repo(request, tmp_path):
    if request.param == "memory":
        return InMemoryRepository()
    return JsonFileRepository(tmp_path / "records")


class TestRepository:
    def test_put_and_get(self, repo):
        repo.put("a", {"id": "a", "value": 1})
        assert repo.get("a") == {"id": "a", "value": 1}
        assert "a" in repo
        assert "b" not in repo

    def test_get_missing(self, repo):
        assert repo.get("nope") is None

    def test_put_replaces(self, repo):
        repo.put("a", {"id": "a", "value": 1})
        repo.put("a", {"id": "a", "value": 2})
        assert repo.get("a")["value"] == 2
        assert len(repo.list()) == 1

    def test_list_with_predicate(self, repo):
        repo.put("a", {"id": "a", "active": True})
        repo.put("b", {"id": "b", "active": False})
        active = repo.list(lambda r: r["active"])
        assert [r["id"] for r in active] == ["a"]

    def test_delete(self, repo):
        repo.put("a", {"id": "a"})
        assert repo.delete("a") is True
        assert repo.delete("a") is False
        assert repo.get("a") is None

    def test_returned_records_are_copies(self, repo):
        repo.put("a", {"id": "a", "tags": ["x"]})
        record = repo.get("a")
        record["tags"].append("y")
        assert repo.get("a")["tags"] == ["x"]


class TestJsonFileRepository:
    def test_path_characters_are_replaced(self, tmp_path):
        repo = JsonFileRepository(tmp_path)
        repo.put("team/alpha id", {"id": "team/alpha id"})
        files = list(tmp_path.glob("*.json"))
        assert len(files) == 1
        assert files[0].parent == tmp_path
        assert repo.get("team/alpha id") == {"id": "team/alpha id"}

    def test_corrupt_file_is_skipped(self, tmp_path):
        repo = JsonFileRepository(tmp_path)
        repo.put("good", {"id": "good"})
        (tmp_path / "bad.json").write_text("{not json", encoding="utf-8")
        assert [r["id"] for r in repo.list()] == ["good"]
        assert repo.get("bad") is None

    def test_survives_new_instance(self, tmp_path):
        JsonFileRepository(tmp_path).put("a", {"id": "a"})
        assert JsonFileRepository(tmp_path).get("a") == {"id": "a"}
