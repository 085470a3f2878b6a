"""Tests for pulling training plans out of assistant replies."""
from __future__ import annotations

import json

from app.services.plan_extractor import extract_training_plan


def _reply(body: str) -> str:
    return f"Ecco il piano per oggi.\n\n```training_plan\n{body}\n```\n\nFammi sapere!"


def test_extracts_plan_with_required_fields() -> None:
    payload = {
        "gym_name": "Centro Fit",
        "session_date": "2026-10-20",
        "exercises": [
            {"exercise_name": "Squat", "sets": 3, "reps": 10, "weight_kg": 40, "duration_seconds": None, "notes": None},
            {"exercise_name": "Plank", "duration_seconds": 60, "notes": "core attivo"},
        ],
        "notes": "Riscaldamento 10 minuti",
    }

    plan = extract_training_plan(_reply(json.dumps(payload, indent=2)))

    assert plan is not None
    assert plan.gym_name == "Centro Fit"
    assert plan.session_date == "2026-10-20"
    assert [e.exercise_name for e in plan.exercises] == ["Squat", "Plank"]
    assert plan.exercises[0].sets == 3
    assert plan.exercises[0].weight_kg == 40
    assert plan.exercises[1].duration_seconds == 60
    assert plan.exercises[1].notes == "core attivo"
    assert plan.notes == "Riscaldamento 10 minuti"


def test_empty_exercise_list_is_still_a_plan() -> None:
    plan = extract_training_plan(_reply('{"session_date": "2026-10-20", "exercises": []}'))

    assert plan is not None
    assert plan.exercises == []
    assert plan.gym_name is None


def test_reply_without_block_has_no_plan() -> None:
    assert extract_training_plan("Come si sente oggi il cliente?") is None
    assert extract_training_plan("") is None
    assert extract_training_plan(None) is None


def test_other_fence_tags_are_ignored() -> None:
    text = '```json\n{"session_date": "2026-10-20", "exercises": []}\n```'

    assert extract_training_plan(text) is None


def test_invalid_json_yields_no_plan() -> None:
    assert extract_training_plan(_reply('{"session_date": "2026-10-20", "exercises": [}')) is None


def test_missing_required_fields_yield_no_plan() -> None:
    assert extract_training_plan(_reply('{"exercises": []}')) is None
    assert extract_training_plan(_reply('{"session_date": "2026-10-20"}')) is None
    assert extract_training_plan(_reply('{"session_date": "", "exercises": []}')) is None
    assert extract_training_plan(_reply('{"session_date": "2026-10-20", "exercises": "squat"}')) is None
    assert extract_training_plan(_reply('["not", "an", "object"]')) is None


def test_first_block_wins() -> None:
    text = _reply('{"session_date": "2026-10-20", "exercises": []}') + _reply(
        '{"session_date": "2026-11-01", "exercises": []}'
    )

    plan = extract_training_plan(text)

    assert plan is not None
    assert plan.session_date == "2026-10-20"


def test_numeric_strings_are_coerced_and_ranges_dropped() -> None:
    body = json.dumps(
        {
            "session_date": "2026-10-20",
            "exercises": [{"exercise_name": "Affondi", "sets": "3", "reps": "10-12", "weight_kg": "12,5"}],
        }
    )

    plan = extract_training_plan(_reply(body))

    assert plan is not None
    exercise = plan.exercises[0]
    assert exercise.sets == 3
    assert exercise.reps is None
    assert exercise.weight_kg == 12.5


def test_non_finite_numbers_are_dropped() -> None:
    body = (
        '{"session_date": "2026-10-20", "exercises": ['
        '{"exercise_name": "Squat", "sets": 1e400, "reps": "Infinity", "weight_kg": NaN, "duration_seconds": -1e400}'
        "]}"
    )

    plan = extract_training_plan(_reply(body))

    assert plan is not None
    exercise = plan.exercises[0]
    assert exercise.sets is None
    assert exercise.reps is None
    assert exercise.weight_kg is None
    assert exercise.duration_seconds is None


def test_wrongly_typed_optional_fields_keep_the_plan() -> None:
    body = json.dumps(
        {
            "gym_name": 3,
            "session_date": "2026-10-20",
            "exercises": [
                {"exercise_name": "Squat", "notes": 5, "exercise_id": "non-un-uuid"},
                {"exercise_name": "Plank", "notes": {"testo": "core"}, "exercise_id": 42},
            ],
            "notes": ["riscaldamento"],
        }
    )

    plan = extract_training_plan(_reply(body))

    assert plan is not None
    assert plan.gym_name == "3"
    assert plan.notes is None
    assert plan.exercises[0].notes == "5"
    assert plan.exercises[0].exercise_id is None
    assert plan.exercises[1].notes is None
    assert plan.exercises[1].exercise_id is None


def test_empty_plan_with_numeric_gym_name_is_kept() -> None:
    plan = extract_training_plan(_reply('{"gym_name": 3, "session_date": "2026-10-20", "exercises": []}'))

    assert plan is not None
    assert plan.exercises == []


def test_unusable_exercise_entries_are_skipped() -> None:
    body = json.dumps(
        {
            "session_date": "2026-10-20",
            "exercises": ["Squat", {"sets": 3}, {"exercise_name": "  "}, {"exercise_name": "Plank"}],
        }
    )

    plan = extract_training_plan(_reply(body))

    assert plan is not None
    assert [e.exercise_name for e in plan.exercises] == ["Plank"]
