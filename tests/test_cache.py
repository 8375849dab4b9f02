"""Tests for the in-memory record cache."""

from __future__ import annotations

import pytest

from core.cache import LocalCacheStore
from models import Project, Prompt, RecordType


def test_replace_all_keeps_first_duplicate() -> None:
    cache = LocalCacheStore()
    first = Prompt(title="first")
    duplicate = Prompt(id=first.id, title="duplicate")
    other = Prompt(title="other")

    cache.replace_all(RecordType.PROMPT, [first, other, duplicate])

    assert [prompt.title for prompt in cache.get(RecordType.PROMPT)] == ["first", "other"]


def test_upsert_replaces_in_place_or_inserts_first() -> None:
    cache = LocalCacheStore()
    a = Prompt(title="a")
    b = Prompt(title="b")
    cache.replace_all(RecordType.PROMPT, [a, b])

    cache.upsert(Prompt(id=b.id, title="b2"))
    cache.upsert(Prompt(title="c"))

    assert [prompt.title for prompt in cache.get(RecordType.PROMPT)] == ["c", "a", "b2"]


def test_insert_moves_existing_record() -> None:
    cache = LocalCacheStore()
    a, b, c = Prompt(title="a"), Prompt(title="b"), Prompt(title="c")
    cache.replace_all(RecordType.PROMPT, [a, b, c])

    cache.insert(c, 1)

    assert [prompt.title for prompt in cache.get(RecordType.PROMPT)] == ["a", "c", "b"]


def test_get_returns_copy() -> None:
    cache = LocalCacheStore()
    cache.upsert(Project(name="Research"))

    snapshot = cache.get(RecordType.PROJECT)
    snapshot.clear()

    assert len(cache.get(RecordType.PROJECT)) == 1


def test_remove_and_remove_where() -> None:
    cache = LocalCacheStore()
    keep = Prompt(title="keep", tags=["x"])
    drop = Prompt(title="drop", tags=["y"])
    cache.replace_all(RecordType.PROMPT, [keep, drop])

    removed = cache.remove_where(RecordType.PROMPT, lambda prompt: "y" in prompt.tags)

    assert removed == [drop]
    assert cache.remove(RecordType.PROMPT, keep.id) is True
    assert cache.remove(RecordType.PROMPT, keep.id) is False
    assert cache.get(RecordType.PROMPT) == []


@pytest.mark.parametrize("record_type", list(RecordType))
def test_clear_empties_every_slice(record_type: RecordType) -> None:
    cache = LocalCacheStore()
    cache.upsert(Prompt())
    cache.upsert(Project())

    cache.clear()

    assert cache.get(record_type) == []
