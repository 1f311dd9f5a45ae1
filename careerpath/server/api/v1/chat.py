"""
API endpoints for direct chats between users, typically a student and a mentor.

Only the two participants can see a chat. A message counts as unread for a
participant until they open the chat's message list.
"""

from datetime import datetime
from typing import Sequence

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.logging_config import get_logger
from careerpath.server.core.database import get_session
from careerpath.server.models.chat import Chat, ChatMessage, ChatMessageRead, ChatRead, ChatType
from careerpath.server.models.user import User
from careerpath.server.schemas.chat import (
    ChatEnvelope,
    ChatListResponse,
    MessagePage,
    SendMessageRequest,
    SendMessageResponse,
    StartChatRequest,
)
from careerpath.server.schemas.common import MessageResponse
from careerpath.server.services.deps import CurrentUserDep

logger = get_logger(__name__)

router = APIRouter(tags=["chat"])

CHAT_NOT_FOUND = "Chat not found or access denied"


def read_receipt(user_id: int, when: datetime) -> dict:
    return {"user_id": user_id, "read_at": when.isoformat()}


def unread_count(messages: Sequence[ChatMessage], user_id: int) -> int:
    """Messages from the other participant that ``user_id`` has not read yet."""
    return sum(1 for m in messages if m.sender_id != user_id and not m.is_read_by(user_id))


def _chat_read(chat: Chat, unread: int) -> ChatRead:
    return ChatRead.model_validate(chat, update={"participants": list(chat.participants), "unread_count": unread})


async def _get_chat(session: AsyncSession, chat_id: int, user_id: int) -> Chat:
    chat = await session.get(Chat, chat_id)
    if chat is None or not chat.is_active or not chat.has_participant(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CHAT_NOT_FOUND)
    return chat


async def _chat_messages(session: AsyncSession, chat_ids: Sequence[int]) -> list[ChatMessage]:
    if not chat_ids:
        return []
    result = await session.execute(select(ChatMessage).where(ChatMessage.chat_id.in_(chat_ids)))
    return list(result.scalars().all())


@router.get(
    "",
    response_model=ChatListResponse,
    summary="List Chats",
    description="The caller's active chats, most recent message first, each with its unread count.",
)
async def list_chats(
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> ChatListResponse:
    result = await session.execute(
        select(Chat)
        .where(
            Chat.is_active.is_(True),
            or_(Chat.participant_one_id == user.id, Chat.participant_two_id == user.id),
        )
        .order_by(Chat.updated_at.desc(), Chat.id.desc())
    )
    chats = list(result.scalars().all())

    by_chat: dict[int, list[ChatMessage]] = {}
    for message in await _chat_messages(session, [c.id for c in chats]):
        by_chat.setdefault(message.chat_id, []).append(message)

    return ChatListResponse(chats=[_chat_read(c, unread_count(by_chat.get(c.id, []), user.id)) for c in chats])


@router.post(
    "/start-chat",
    response_model=ChatEnvelope,
    summary="Start Chat",
    description="Open the chat with another user, creating it on first contact.",
    responses={404: {"description": "Mentor user not found"}},
)
async def start_chat(
    payload: StartChatRequest,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> ChatEnvelope:
    """
    Find or create a chat.

    - **mentor_user_id**: The other participant.
    - **mentor_id**: Optional mentor profile; when given, the chat is a
      ``mentor-student`` chat.

    The existing active chat between the two users is returned whichever of
    them started it.
    """
    other = await session.get(User, payload.mentor_user_id)
    if other is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mentor user not found")

    result = await session.execute(
        select(Chat).where(
            Chat.is_active.is_(True),
            or_(
                and_(Chat.participant_one_id == user.id, Chat.participant_two_id == other.id),
                and_(Chat.participant_one_id == other.id, Chat.participant_two_id == user.id),
            ),
        )
    )
    chat = result.scalars().first()
    if chat is None:
        chat = Chat(
            participant_one_id=user.id,
            participant_two_id=other.id,
            mentor_id=payload.mentor_id,
            chat_type=ChatType.MENTOR_STUDENT if payload.mentor_id else ChatType.GENERAL,
        )
        session.add(chat)
        await session.commit()
        await session.refresh(chat)
        logger.info(f"User {user.id} started chat {chat.id} with user {other.id}")

    messages = await _chat_messages(session, [chat.id])
    return ChatEnvelope(message="Chat started successfully", chat=_chat_read(chat, unread_count(messages, user.id)))


@router.get(
    "/{chat_id}/messages",
    response_model=MessagePage,
    summary="Chat Messages",
    description="One page of messages, newest first. Opening the page marks every message as read.",
    responses={404: {"description": "Chat not found or access denied"}},
)
async def chat_messages(
    chat_id: int,
    user: CurrentUserDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> MessagePage:
    chat = await _get_chat(session, chat_id, user.id)

    now = datetime.utcnow()
    for message in await _chat_messages(session, [chat.id]):
        if not message.is_read_by(user.id):
            message.read_by = [*message.read_by, read_receipt(user.id, now)]
            session.add(message)
    await session.commit()

    total = (
        await session.execute(select(func.count()).select_from(ChatMessage).where(ChatMessage.chat_id == chat.id))
    ).scalar_one()
    skip = (page - 1) * limit
    result = await session.execute(
        select(ChatMessage)
        .where(ChatMessage.chat_id == chat.id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return MessagePage(
        chat_id=chat.id,
        messages=[ChatMessageRead.model_validate(m) for m in result.scalars().all()],
        total_messages=total,
        has_more=skip + limit < total,
    )


@router.post(
    "/{chat_id}/messages",
    response_model=SendMessageResponse,
    summary="Send Message",
    responses={
        400: {"description": "Message content is required"},
        404: {"description": "Chat not found or access denied"},
    },
)
async def send_message(
    chat_id: int,
    payload: SendMessageRequest,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> SendMessageResponse:
    content = payload.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message content is required")
    chat = await _get_chat(session, chat_id, user.id)

    now = datetime.utcnow()
    message = ChatMessage(
        chat_id=chat.id,
        sender_id=user.id,
        content=content,
        message_type=payload.message_type,
        read_by=[read_receipt(user.id, now)],
        created_at=now,
    )
    chat.last_message = {"content": content, "sender_id": user.id, "timestamp": now.isoformat()}
    chat.updated_at = now
    session.add(message)
    session.add(chat)
    await session.commit()
    await session.refresh(message)
    return SendMessageResponse(message="Message sent successfully", chat_message=ChatMessageRead.model_validate(message))


@router.get(
    "/{chat_id}",
    response_model=ChatRead,
    summary="Get Chat",
    responses={404: {"description": "Chat not found or access denied"}},
)
async def get_chat(
    chat_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> ChatRead:
    chat = await _get_chat(session, chat_id, user.id)
    return _chat_read(chat, unread_count(await _chat_messages(session, [chat.id]), user.id))


@router.delete(
    "/{chat_id}",
    response_model=MessageResponse,
    summary="Delete Chat",
    description="Hide the chat for both participants. Messages are kept.",
    responses={404: {"description": "Chat not found or access denied"}},
)
async def delete_chat(
    chat_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    chat = await _get_chat(session, chat_id, user.id)
    chat.is_active = False
    chat.updated_at = datetime.utcnow()
    session.add(chat)
    await session.commit()
    return MessageResponse(message="Chat deleted successfully")
