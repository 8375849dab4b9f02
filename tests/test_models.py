"""Tests for Prompt, Project, and SavedOutput models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from models.project_model import Project
from models.prompt_model import Prompt, normalize_tags
from models.records import RecordType, record_type_of
from models.saved_output_model import SavedOutput


def test_prompt_defaults_match_new_prompt_template() -> None:
    prompt = Prompt()

    assert prompt.title == "New Prompt"
    assert prompt.temperature == pytest.approx(0.7)
    assert prompt.max_tokens == 1000
    assert prompt.project_id is None
    assert prompt.is_favorite is False
    assert prompt.created_at <= prompt.modified_at


@pytest.mark.parametrize(
    ("max_tokens", "characters", "words"),
    [(1000, 4000, 750), (1, 4, 0), (333, 1332, 249)],
)
def test_prompt_output_estimates(max_tokens: int, characters: int, words: int) -> None:
    prompt = Prompt(max_tokens=max_tokens)

    assert prompt.estimated_characters == characters
    assert prompt.estimated_words == words


@pytest.mark.parametrize(
    ("temperature", "max_tokens"),
    [(-0.1, 100), (1.5, 100), (0.5, 0), (0.5, -10)],
)
def test_prompt_rejects_out_of_range_parameters(temperature: float, max_tokens: int) -> None:
    with pytest.raises(ValueError):
        Prompt(temperature=temperature, max_tokens=max_tokens)


def test_prompt_clamps_modified_before_created() -> None:
    created = datetime(2026, 1, 2, tzinfo=UTC)
    prompt = Prompt(created_at=created, modified_at=created - timedelta(days=1))

    assert prompt.modified_at == created


def test_touch_never_moves_modified_at_backwards() -> None:
    future = datetime.now(UTC) + timedelta(hours=1)
    prompt = Prompt(created_at=future, modified_at=future)

    prompt.touch()

    assert prompt.modified_at == future


def test_matches_is_case_insensitive_across_fields() -> None:
    prompt = Prompt(
        title="Code Review Assistant",
        system_text="You review diffs.",
        user_text="Check this PR",
        tags=["Python"],
    )

    assert prompt.matches("review")
    assert prompt.matches("DIFFS")
    assert prompt.matches("pr")
    assert prompt.matches("python")
    assert prompt.matches("")
    assert not prompt.matches("zzz")


def test_normalize_tags_trims_and_deduplicates() -> None:
    assert normalize_tags([" python ", "Python", "", "sql"]) == ["python", "sql"]
    assert normalize_tags("solo") == ["solo"]
    assert normalize_tags(None) == []


def test_prompt_record_round_trip() -> None:
    prompt = Prompt(
        title="Round trip",
        system_text="system",
        user_text="user",
        temperature=0.25,
        max_tokens=512,
        tags=["a", "b"],
        project_id=uuid.uuid4(),
        is_favorite=True,
        remote_ref="abc",
    )

    restored = Prompt.from_record(prompt.to_record())

    assert restored == prompt


def test_project_validity_requires_name() -> None:
    assert Project(name="Research").is_valid
    assert not Project(name="   ").is_valid
    assert Project().color_tag == "#007AFF"


def test_saved_output_from_prompt_snapshots_parameters() -> None:
    prompt = Prompt(system_text="sys", user_text="usr", temperature=0.2, max_tokens=42)

    output = SavedOutput.from_prompt(prompt, "Result", actual_tokens_used=17, notes="good")
    prompt.user_text = "edited later"

    assert output.prompt_id == prompt.id
    assert output.user_text == "usr"
    assert output.temperature == pytest.approx(0.2)
    assert output.max_tokens == 42
    assert output.actual_tokens_used == 17
    assert output.notes == "good"


def test_saved_output_drops_non_positive_token_counts() -> None:
    output = SavedOutput(prompt_id=uuid.uuid4(), output_text="x", actual_tokens_used=0)

    assert output.actual_tokens_used is None


def test_record_type_of_rejects_foreign_objects() -> None:
    assert record_type_of(Prompt()) is RecordType.PROMPT
    assert record_type_of(Project()) is RecordType.PROJECT
    with pytest.raises(TypeError):
        record_type_of(object())  # type: ignore[arg-type]
