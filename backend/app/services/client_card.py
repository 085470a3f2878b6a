"""Markdown client card: profile, goal history and session log."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from app.db.models.client import Client, GoalHistory
from app.db.models.training_session import SESSION_STATUS_COMPLETED, SessionExercise
from app.db.repositories import SessionDetail


def calculate_age(birth_date: date, *, today: Optional[date] = None) -> int:
    """Age in whole years, corrected for month and day."""
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def format_date(value: date | datetime) -> str:
    return value.strftime("%d/%m/%Y")


def format_exercise_details(row: SessionExercise) -> str:
    parts: List[str] = []
    if row.sets:
        parts.append(f"{row.sets} serie")
    if row.reps:
        parts.append(f"{row.reps} reps")
    if row.weight_kg:
        weight = int(row.weight_kg) if float(row.weight_kg).is_integer() else row.weight_kg
        parts.append(f"{weight} kg")
    if row.duration_seconds:
        minutes, seconds = divmod(row.duration_seconds, 60)
        parts.append(f"{minutes}m {seconds}s" if minutes > 0 else f"{seconds}s")
    return f" - {', '.join(parts)}" if parts else ""


def generate_client_card(
    client: Client,
    goals: List[GoalHistory],
    sessions: List[SessionDetail],
    *,
    include_name: bool = True,
    include_gym_description: bool = True,
    today: Optional[date] = None,
) -> str:
    """Render the card. ``goals`` and ``sessions`` are expected newest first."""
    display_age = calculate_age(client.birth_date, today=today) if client.birth_date else client.age_years
    lines: List[str] = []

    if include_name:
        lines += [f"# {client.first_name} {client.last_name}", ""]

    lines += ["## Dati Anagrafici", ""]
    if display_age:
        lines.append(f"- **Eta**: {display_age} anni")
    if client.birth_date:
        lines.append(f"- **Data di nascita**: {format_date(client.birth_date)}")
    if client.gender in ("male", "female"):
        lines.append(f"- **Genere**: {'Maschio' if client.gender == 'male' else 'Femmina'}")
    lines.append("")

    lines += ["## Anamnesi", ""]
    lines += [client.physical_notes if client.physical_notes else "_Nessuna nota fisica registrata._", ""]

    lines += ["## Storia Obiettivi", ""]
    if goals:
        for index, goal in enumerate(goals):
            marker = "**[ATTUALE]** " if index == 0 else ""
            lines.append(f"{index + 1}. {marker}{goal.goal} _(dal {format_date(goal.started_at)})_")
    else:
        lines.append("_Nessun obiettivo registrato._")
    lines.append("")

    lines += ["## Sessioni", ""]
    if not sessions:
        lines.append("_Nessuna sessione registrata._")
    for detail in sessions:
        lines += _render_session(detail, include_gym_description)

    return "\n".join(lines) + "\n"


def _render_session(detail: SessionDetail, include_gym_description: bool) -> List[str]:
    session = detail.session
    completed = session.status == SESSION_STATUS_COMPLETED
    gym = detail.gym
    lines = [
        f"### {format_date(session.session_date)} - {'Completata' if completed else 'Pianificata'}",
        "",
        f"**Palestra**: {gym.name if gym else 'Nessuna palestra'}",
    ]
    if gym and gym.address:
        lines.append(f"**Indirizzo**: {gym.address}")
    if include_gym_description and gym and gym.description:
        lines.append(f"**Dettagli**: {gym.description}")
    lines.append("")

    if not detail.exercises:
        lines.append("_Nessun esercizio in questa sessione._")
    for position, (row, exercise) in enumerate(detail.exercises, start=1):
        icon = ("X " if row.skipped else "✓ ") if completed else ""
        name = exercise.name if exercise else "Esercizio sconosciuto"
        lines.append(f"{position}. {icon}{name}{format_exercise_details(row)}")
        if row.notes:
            lines.append(f"   - _{row.notes}_")
    lines.append("")
    return lines
