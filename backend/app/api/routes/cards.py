"""Markdown card proxy route."""
from __future__ import annotations

from fastapi import APIRouter, Response

from app.api.schemas.cards import CardFetchRequest, CardFetchResponse
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.card_fetcher import fetch_card

router = APIRouter()

CARD_CACHE_CONTROL = "public, max-age=3600, s-maxage=86400"


@router.post("/cards/fetch", response_model=CardFetchResponse, tags=["cards"])
def fetch_markdown_card(payload: CardFetchRequest, response: Response) -> CardFetchResponse:
    """Fetch a remote markdown card, split its front matter and absolutize images."""
    with trace("cards.fetch", metadata={"card_url": payload.card_url}):
        card = fetch_card(payload.card_url)
    log_metric("cards.fetch.content_length", len(card.content))
    response.headers["Cache-Control"] = CARD_CACHE_CONTROL
    return CardFetchResponse(frontmatter=card.frontmatter, content=card.content, base_url=card.base_url)
