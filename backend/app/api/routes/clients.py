"""Client card and goal history routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from app.api.schemas.clients import GoalCreateRequest, GoalResponse
from app.db.deps import get_db
from app.db.models.client import Client
from app.db.repositories import ClientRepository
from app.services.client_card import generate_client_card

router = APIRouter()


@router.get("/clients/{client_id}/card", response_class=PlainTextResponse, tags=["clients"])
def client_card(
    client_id: UUID,
    coach_id: UUID = Query(...),
    include_name: bool = Query(True),
    include_gym_description: bool = Query(True),
    db: Session = Depends(get_db),
) -> PlainTextResponse:
    """Render the client's markdown card."""
    clients = ClientRepository(db)
    client = _owned_client(clients, client_id, coach_id)
    markdown = generate_client_card(
        client,
        clients.goals(client_id),
        clients.sessions(client_id),
        include_name=include_name,
        include_gym_description=include_gym_description,
    )
    return PlainTextResponse(markdown, media_type="text/markdown; charset=utf-8")


@router.post(
    "/clients/{client_id}/goals",
    response_model=GoalResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["clients"],
)
def record_client_goal(client_id: UUID, payload: GoalCreateRequest, db: Session = Depends(get_db)) -> GoalResponse:
    """Start a new goal, closing the one currently open."""
    clients = ClientRepository(db)
    client = _owned_client(clients, client_id, payload.coach_id)
    entry = clients.record_goal(client, payload.goal)
    return GoalResponse(
        id=entry.id,
        client_id=entry.client_id,
        goal=entry.goal,
        started_at=entry.started_at,
        ended_at=entry.ended_at,
    )


def _owned_client(clients: ClientRepository, client_id: UUID, coach_id: UUID) -> Client:
    client = clients.get(client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente non trovato")
    if client.coach_id != coach_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cliente non associato al coach")
    return client
