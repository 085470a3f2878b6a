"""System prompt for the session-planning assistant."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from app.core.config import settings
from app.services.client_context import ClientContext, RecentExercise

PLAN_FENCE_TAG = "training_plan"

NO_SESSIONS = "Nessuna sessione precedente"
NO_GYMS = "Nessuna palestra registrata"

OUTPUT_CONTRACT = f"""ISTRUZIONI:
1. Rispondi sempre in italiano
2. Quando proponi un piano di allenamento, descrivi prima gli esercizi in modo conversazionale
3. Quando il coach conferma il piano, rispondi con un blocco JSON strutturato nel formato:
```{PLAN_FENCE_TAG}
{{
  "gym_name": "nome palestra o null",
  "session_date": "YYYY-MM-DD",
  "exercises": [
    {{
      "exercise_name": "Nome Esercizio",
      "sets": 3,
      "reps": 12,
      "weight_kg": null,
      "duration_seconds": null,
      "notes": "note opzionali"
    }}
  ],
  "notes": "note generali sessione"
}}
```
4. Usa solo esercizi dalla lista disponibile quando possibile, altrimenti suggerisci nuovi esercizi descrivendoli
5. Adatta l'intensità e il volume all'età e alle condizioni fisiche del cliente
6. Considera l'obiettivo del cliente nella scelta degli esercizi
7. Proponi progressione rispetto alle sessioni precedenti quando appropriato"""


def build_system_prompt(
    context: ClientContext,
    exercise_names: Sequence[str],
    gym_names: Iterable[str],
    *,
    exercise_limit: Optional[int] = None,
) -> str:
    """Render persona, client profile, history, catalog sample and output rules."""
    limit = exercise_limit if exercise_limit is not None else settings.prompt_exercise_limit
    gym_list = ", ".join(gym_names) or NO_GYMS
    exercise_list = ", ".join(list(exercise_names)[:limit])
    age = f"{context.age} anni" if context.age else "non specificata"

    return (
        "Sei un assistente esperto per personal trainer e istruttori di pilates. "
        "Aiuti i coach a pianificare sessioni di allenamento per i loro clienti.\n"
        "\n"
        "CLIENTE ATTUALE:\n"
        f"- Nome: {context.first_name} {context.last_name}\n"
        f"- Età: {age}\n"
        f"- Note fisiche: {context.physical_notes or 'nessuna'}\n"
        f"- Obiettivo attuale: {context.current_goal or 'non specificato'}\n"
        "\n"
        "SESSIONI RECENTI:\n"
        f"{render_recent_sessions(context)}\n"
        "\n"
        "PALESTRE DISPONIBILI:\n"
        f"{gym_list}\n"
        "\n"
        "ESERCIZI DISPONIBILI (esempi):\n"
        f"{exercise_list}\n"
        "\n"
        f"{OUTPUT_CONTRACT}"
    )


def render_recent_sessions(context: ClientContext) -> str:
    if not context.recent_sessions:
        return NO_SESSIONS
    lines: List[str] = []
    for index, session in enumerate(context.recent_sessions, start=1):
        venue = f" @ {session.gym_name}" if session.gym_name else ""
        exercises = ", ".join(describe_exercise(e) for e in session.exercises)
        lines.append(f"{index}. {session.date}{venue}: {exercises}")
    return "\n".join(lines)


def describe_exercise(exercise: RecentExercise) -> str:
    """One-line digest such as ``Squat 3x10 40kg 2min``."""
    desc = exercise.name
    if exercise.sets and exercise.reps:
        desc += f" {exercise.sets}x{exercise.reps}"
    if exercise.weight_kg:
        desc += f" {_compact_number(exercise.weight_kg)}kg"
    if exercise.duration_seconds:
        desc += f" {int(exercise.duration_seconds / 60 + 0.5)}min"
    return desc


def _compact_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)
