import logging

from fastapi import APIRouter, Depends, Query

from ..cache import GLOBAL_CHAT, tournament_chat_key
from ..config import CHAT_RATE_LIMIT_MAX, CHAT_RATE_LIMIT_WINDOW_SECONDS
from ..dependencies import chat_store, rate_limit_store
from ..exceptions import RateLimited, ValidationError
from ..schemas import ChatMessage, OkResponse, SendChatMessage
from ..services.authorization import Identity
from ..services.chat import ChatStore
from ..services.rate_limit import RateLimitStore
from ..time_utils import utcnow
from .auth import get_current_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def _tournament_channel(tournament_id: str) -> str:
    tournament_id = (tournament_id or "").strip()
    if not tournament_id:
        raise ValidationError("tournamentId is required.", code="id_required")
    return tournament_chat_key(tournament_id)


async def _post(
    channel: str,
    body: SendChatMessage,
    current: Identity,
    chat: ChatStore,
    limiter: RateLimitStore,
) -> OkResponse:
    text = (body.text or "").strip()
    if not text:
        raise ValidationError("Text is required.", code="chat_text_required")

    allowed = await limiter.allow(
        "chat",
        current.username,
        CHAT_RATE_LIMIT_MAX,
        CHAT_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not allowed:
        logger.info("Chat rate limit hit by %s", current.username)
        raise RateLimited(
            "Too many messages. Please wait before sending another.",
            code="chat_rate_limited",
        )

    message = ChatMessage(
        user_id=current.username,
        display_name=current.display_name or current.username,
        text=text,
        timestamp_utc=utcnow(),
    )
    await chat.push_message(channel, message)
    return OkResponse()


@router.post("/global", response_model=OkResponse)
async def send_global(
    body: SendChatMessage,
    current: Identity = Depends(get_current_identity),
    chat: ChatStore = Depends(chat_store),
    limiter: RateLimitStore = Depends(rate_limit_store),
):
    return await _post(GLOBAL_CHAT, body, current, chat, limiter)


@router.get("/global", response_model=list[ChatMessage])
async def read_global(
    last: int | None = Query(None),
    chat: ChatStore = Depends(chat_store),
):
    return await chat.get_last(GLOBAL_CHAT, last)


@router.post("/tournament/{tournament_id}", response_model=OkResponse)
async def send_tournament(
    tournament_id: str,
    body: SendChatMessage,
    current: Identity = Depends(get_current_identity),
    chat: ChatStore = Depends(chat_store),
    limiter: RateLimitStore = Depends(rate_limit_store),
):
    channel = _tournament_channel(tournament_id)
    return await _post(channel, body, current, chat, limiter)


@router.get("/tournament/{tournament_id}", response_model=list[ChatMessage])
async def read_tournament(
    tournament_id: str,
    last: int | None = Query(None),
    chat: ChatStore = Depends(chat_store),
):
    return await chat.get_last(_tournament_channel(tournament_id), last)
