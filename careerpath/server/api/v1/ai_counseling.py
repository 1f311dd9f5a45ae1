"""
API endpoints for the AI career counselor.

Conversations are stored as ``CounselingSession`` rows addressed by the
client-chosen ``session_id`` key. Every chat turn stores the user message and
the counselor's answer, even when Gemini is unavailable and a fallback answer
is used.
"""

import time
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.logging_config import get_logger
from careerpath.server.core.database import get_session
from careerpath.server.models.counseling import (
    CounselingMessage,
    CounselingMessageRead,
    CounselingMessageType,
    CounselingSession,
    CounselingSessionDetail,
    CounselingSessionRead,
    CounselingSessionStatus,
)
from careerpath.server.schemas.common import MessageResponse
from careerpath.server.schemas.counseling import (
    AnalysisResponse,
    AnalyzeRequest,
    ChatRequest,
    ChatResponse,
    ConnectionTestResponse,
    CounselingStats,
    QuestionsResponse,
    SessionDetailResponse,
    SessionListResponse,
    SessionPagination,
    SessionUpdate,
    SessionUpdateResponse,
)
from careerpath.server.services.counseling import (
    analyze_user_responses,
    counseling_profile,
    generate_assessment_questions,
    generate_counseling_response,
)
from careerpath.server.services.deps import AIClientDep, CurrentUserDep

logger = get_logger(__name__)

router = APIRouter(tags=["ai-counseling"])

CONTEXT_MESSAGES = 10
TITLE_LENGTH = 30
RECENT_ACTIVITY_WINDOW = timedelta(days=7)
UPDATABLE_STATUSES = (CounselingSessionStatus.ACTIVE, CounselingSessionStatus.ARCHIVED)


def make_session_title(message: str) -> str:
    """Title a conversation after its first question."""
    if len(message) > TITLE_LENGTH:
        return message[:TITLE_LENGTH] + "..."
    return message


def _session_read(chat_session: CounselingSession, message_count: int) -> CounselingSessionRead:
    return CounselingSessionRead.model_validate(
        chat_session, update={"session_id": chat_session.session_key, "message_count": message_count}
    )


async def _count_messages(session: AsyncSession, chat_session_id: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(CounselingMessage).where(CounselingMessage.session_id == chat_session_id)
    )
    return result.scalar_one()


async def _messages(session: AsyncSession, chat_session_id: int) -> list[CounselingMessage]:
    result = await session.execute(
        select(CounselingMessage)
        .where(CounselingMessage.session_id == chat_session_id)
        .order_by(CounselingMessage.timestamp, CounselingMessage.id)
    )
    return list(result.scalars().all())


async def _get_owned_session(session: AsyncSession, session_key: str, user_id: int) -> CounselingSession:
    result = await session.execute(
        select(CounselingSession).where(
            CounselingSession.session_key == session_key,
            CounselingSession.user_id == user_id,
            CounselingSession.status != CounselingSessionStatus.DELETED,
        )
    )
    chat_session = result.scalars().first()
    if chat_session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat session not found")
    return chat_session


@router.get(
    "/test",
    response_model=ConnectionTestResponse,
    summary="Test AI Connection",
    description="Send a fixed prompt to Gemini and report whether it answered. Does not require sign-in.",
)
async def check_connection(client: AIClientDep) -> ConnectionTestResponse:
    result = await client.test_connection()
    message = "Google AI API connection successful" if result["success"] else "Google AI API connection failed"
    return ConnectionTestResponse(message=message, **result)


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Chat With Counselor",
    description="Send a message to the AI counselor and receive its answer.",
    responses={
        400: {"description": "Message must be 1 to 2000 characters"},
        409: {"description": "Session belongs to another user or is no longer active"},
    },
)
async def chat(
    payload: ChatRequest,
    user: CurrentUserDep,
    client: AIClientDep,
    session: AsyncSession = Depends(get_session),
) -> ChatResponse:
    """
    One counseling turn.

    - **message**: The question, 1 to 2000 characters.
    - **session_id**: Conversation key. Omit it to start a new conversation
      keyed ``session_{user_id}_{epoch_ms}``.

    The last ten messages of the conversation are given to the counselor as
    context together with the user's onboarding profile.
    """
    session_key = payload.session_id or f"session_{user.id}_{int(time.time() * 1000)}"

    result = await session.execute(select(CounselingSession).where(CounselingSession.session_key == session_key))
    chat_session = result.scalars().first()
    if chat_session is None:
        chat_session = CounselingSession(session_key=session_key, user_id=user.id)
        session.add(chat_session)
        await session.flush()
    elif chat_session.user_id != user.id or chat_session.status != CounselingSessionStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Chat session is not available")

    if await _count_messages(session, chat_session.id) == 0:
        chat_session.title = make_session_title(payload.message)

    session.add(CounselingMessage(session_id=chat_session.id, type=CounselingMessageType.USER, content=payload.message))
    await session.flush()

    history = [
        {"type": m.type.value, "content": m.content} for m in (await _messages(session, chat_session.id))
    ][-CONTEXT_MESSAGES:]
    await session.commit()

    start_time = time.perf_counter()
    reply = await generate_counseling_response(client, payload.message, counseling_profile(user), history)
    response_time = int((time.perf_counter() - start_time) * 1000)

    now = datetime.utcnow()
    session.add(
        CounselingMessage(
            session_id=chat_session.id,
            type=CounselingMessageType.BOT,
            content=reply.response,
            timestamp=now,
            message_metadata={"response_time": response_time, "model": client.model_name, "success": reply.success},
        )
    )
    chat_session.last_message_at = now
    chat_session.updated_at = now
    session.add(chat_session)
    await session.flush()
    message_count = await _count_messages(session, chat_session.id)
    await session.commit()

    logger.debug(f"Counseling session {session_key} answered in {response_time}ms (success={reply.success})")
    return ChatResponse(
        session_id=session_key, response=reply.response, response_time=response_time, message_count=message_count
    )


@router.get(
    "/sessions",
    response_model=SessionListResponse,
    summary="List Counseling Sessions",
    description="The caller's conversations, most recently active first.",
)
async def list_sessions(
    user: CurrentUserDep,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session_status: CounselingSessionStatus = Query(default=CounselingSessionStatus.ACTIVE, alias="status"),
    session: AsyncSession = Depends(get_session),
) -> SessionListResponse:
    conditions = (CounselingSession.user_id == user.id, CounselingSession.status == session_status)
    total = (
        await session.execute(select(func.count()).select_from(CounselingSession).where(*conditions))
    ).scalar_one()

    result = await session.execute(
        select(CounselingSession)
        .where(*conditions)
        .order_by(CounselingSession.last_message_at.desc(), CounselingSession.id.desc())
        .offset(offset)
        .limit(limit)
    )
    chat_sessions = list(result.scalars().all())

    counts: dict[int, int] = {}
    if chat_sessions:
        rows = await session.execute(
            select(CounselingMessage.session_id, func.count(CounselingMessage.id))
            .where(CounselingMessage.session_id.in_([s.id for s in chat_sessions]))
            .group_by(CounselingMessage.session_id)
        )
        counts = dict(rows.all())

    return SessionListResponse(
        sessions=[_session_read(s, counts.get(s.id, 0)) for s in chat_sessions],
        pagination=SessionPagination(total=total, limit=limit, offset=offset, has_more=offset + limit < total),
    )


@router.get(
    "/sessions/{session_key}",
    response_model=SessionDetailResponse,
    summary="Get Counseling Session",
    description="A conversation with all of its messages. Deleted conversations are not returned.",
    responses={404: {"description": "Chat session not found"}},
)
async def get_session_detail(
    session_key: str,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> SessionDetailResponse:
    chat_session = await _get_owned_session(session, session_key, user.id)
    messages = [CounselingMessageRead.model_validate(m) for m in await _messages(session, chat_session.id)]
    detail = CounselingSessionDetail.model_validate(
        chat_session,
        update={"session_id": chat_session.session_key, "message_count": len(messages), "messages": messages},
    )
    return SessionDetailResponse(session=detail)


@router.put(
    "/sessions/{session_key}",
    response_model=SessionUpdateResponse,
    summary="Update Counseling Session",
    description="Rename a conversation, or move it between active and archived.",
    responses={404: {"description": "Chat session not found"}},
)
async def update_session(
    session_key: str,
    payload: SessionUpdate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> SessionUpdateResponse:
    chat_session = await _get_owned_session(session, session_key, user.id)
    if payload.title is not None:
        chat_session.title = payload.title
    # Deletion goes through DELETE only.
    if payload.status in UPDATABLE_STATUSES:
        chat_session.status = payload.status
    chat_session.updated_at = datetime.utcnow()
    session.add(chat_session)
    await session.commit()
    await session.refresh(chat_session)

    message_count = await _count_messages(session, chat_session.id)
    return SessionUpdateResponse(
        message="Session updated successfully", session=_session_read(chat_session, message_count)
    )


@router.delete(
    "/sessions/{session_key}",
    response_model=MessageResponse,
    summary="Delete Counseling Session",
    description="Soft-delete a conversation. Its messages are kept.",
    responses={404: {"description": "Chat session not found"}},
)
async def delete_session(
    session_key: str,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    chat_session = await _get_owned_session(session, session_key, user.id)
    chat_session.status = CounselingSessionStatus.DELETED
    chat_session.updated_at = datetime.utcnow()
    session.add(chat_session)
    await session.commit()
    return MessageResponse(message="Session deleted successfully")


@router.post(
    "/assessment/questions",
    response_model=QuestionsResponse,
    summary="Generate Assessment Questions",
    description="Five career assessment questions tailored to the caller's profile.",
    responses={502: {"description": "The AI service failed"}},
)
async def assessment_questions(user: CurrentUserDep, client: AIClientDep) -> QuestionsResponse:
    result = await generate_assessment_questions(client, counseling_profile(user))
    if not result.success:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to generate assessment questions")
    return QuestionsResponse(questions=result.questions)


@router.post(
    "/assessment/analyze",
    response_model=AnalysisResponse,
    summary="Analyze Assessment",
    description="Written career analysis of the caller's assessment answers.",
    responses={400: {"description": "responses must be a list"}},
)
async def assessment_analyze(
    payload: AnalyzeRequest,
    user: CurrentUserDep,
    client: AIClientDep,
) -> AnalysisResponse:
    result = await analyze_user_responses(client, payload.responses, counseling_profile(user))
    return AnalysisResponse(
        success=result.success, analysis=result.analysis, timestamp=result.timestamp, error=result.error
    )


@router.get(
    "/stats",
    response_model=CounselingStats,
    summary="Counseling Stats",
    description="Usage totals over all of the caller's conversations, deleted ones included.",
)
async def counseling_stats(
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> CounselingStats:
    owned = CounselingSession.user_id == user.id
    total_sessions = (await session.execute(select(func.count()).select_from(CounselingSession).where(owned))).scalar_one()
    active_sessions = (
        await session.execute(
            select(func.count())
            .select_from(CounselingSession)
            .where(owned, CounselingSession.status == CounselingSessionStatus.ACTIVE)
        )
    ).scalar_one()
    total_messages = (
        await session.execute(
            select(func.count(CounselingMessage.id))
            .join(CounselingSession, CounselingMessage.session_id == CounselingSession.id)
            .where(owned)
        )
    ).scalar_one()
    since = datetime.utcnow() - RECENT_ACTIVITY_WINDOW
    recent_activity = (
        await session.execute(
            select(func.count())
            .select_from(CounselingSession)
            .where(owned, CounselingSession.last_message_at >= since)
        )
    ).scalar_one()

    return CounselingStats(
        total_sessions=total_sessions,
        active_sessions=active_sessions,
        total_messages=total_messages,
        recent_activity=recent_activity,
        average_messages_per_session=round(total_messages / total_sessions) if total_sessions else 0,
    )
