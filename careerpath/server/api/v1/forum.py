"""
API endpoints for the community forum.

Reading is public; posting, replying and liking require a signed-in user.
Posts keep ``like_count`` and ``reply_count`` in step with their likes and
replies, and ``excerpt`` in step with their content.
"""

from datetime import datetime
from typing import Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.database import PageParams, paginate, slice_page
from careerpath.core.logging_config import get_logger
from careerpath.server.core.database import get_session
from careerpath.server.models.forum import (
    ForumCategory,
    ForumPost,
    ForumPostDetail,
    ForumReply,
    ForumReplyRead,
    PostStatus,
    make_excerpt,
)
from careerpath.server.schemas.common import CategoryCount, MessageResponse
from careerpath.server.schemas.forum import (
    ForumStats,
    LikeResponse,
    PostCreate,
    PostEnvelope,
    PostListResponse,
    PostUpdate,
    ReplyCreate,
    ReplyEnvelope,
    SortBy,
)
from careerpath.server.services.deps import CurrentUserDep
from careerpath.server.services.forum import post_read, time_ago, toggle_like

logger = get_logger(__name__)

router = APIRouter(tags=["forum"])

SORT_COLUMNS = {
    "newest": ForumPost.created_at.desc(),
    "oldest": ForumPost.created_at.asc(),
    "mostLiked": ForumPost.like_count.desc(),
    "mostReplies": ForumPost.reply_count.desc(),
}


async def _get_post(session: AsyncSession, post_id: int) -> ForumPost:
    post = await session.get(ForumPost, post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def _matches_search(post: ForumPost, term: str) -> bool:
    term = term.lower()
    return term in post.title.lower() or term in post.content.lower() or any(term in t.lower() for t in post.tags)


@router.get(
    "/posts",
    response_model=PostListResponse,
    summary="List Posts",
    description="Browse forum posts. Each post carries its counters and a relative last-activity time.",
    response_description="One page of posts.",
)
async def list_posts(
    category: Optional[Union[ForumCategory, Literal["all"]]] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Matches title, content or tags"),
    post_status: PostStatus = Query(default=PostStatus.ACTIVE, alias="status"),
    sort_by: SortBy = Query(default="lastActivity"),
    order: Literal["asc", "desc"] = Query(default="desc", description="Only applies to lastActivity"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> PostListResponse:
    """
    List posts.

    - **category**: Exact match; ``all`` disables the filter.
    - **search**: Case-insensitive match on title, content or any tag.
    - **sort_by**: newest, oldest, mostLiked, mostReplies or lastActivity.
    - **order**: asc or desc, used with lastActivity.
    """
    statement = select(ForumPost).where(ForumPost.status == post_status)
    if category and category != "all":
        statement = statement.where(ForumPost.category == category)

    if sort_by == "lastActivity":
        column = ForumPost.last_activity.desc() if order == "desc" else ForumPost.last_activity.asc()
    else:
        column = SORT_COLUMNS[sort_by]
    statement = statement.order_by(column, ForumPost.id.desc())

    params = PageParams(page=page, limit=limit)
    if search:
        result = await session.execute(statement)
        found = slice_page([p for p in result.scalars().all() if _matches_search(p, search)], params)
    else:
        found = await paginate(session, statement, params)

    now = datetime.utcnow()
    return PostListResponse(
        posts=[post_read(p, now=now) for p in found.items],
        total_pages=found.total_pages,
        current_page=found.page,
        total_posts=found.total,
    )


@router.get(
    "/posts/{post_id}",
    response_model=ForumPostDetail,
    summary="Get Post",
    description="A post with its replies. Every read counts as a view.",
    responses={404: {"description": "Post not found"}},
)
async def get_post(
    post_id: int,
    session: AsyncSession = Depends(get_session),
) -> ForumPostDetail:
    post = await _get_post(session, post_id)
    post.views += 1
    session.add(post)
    await session.commit()
    await session.refresh(post)

    result = await session.execute(
        select(ForumReply).where(ForumReply.post_id == post.id).order_by(ForumReply.created_at, ForumReply.id)
    )
    replies = [ForumReplyRead.model_validate(r) for r in result.scalars().all()]
    return ForumPostDetail.model_validate(
        post, update={"time_ago": time_ago(post.created_at), "replies": replies}
    )


@router.post(
    "/posts",
    response_model=PostEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Post",
    responses={
        201: {"description": "Post created"},
        400: {"description": "Invalid post data"},
    },
)
async def create_post(
    payload: PostCreate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> PostEnvelope:
    """
    Start a discussion.

    - **title**: 10 to 200 characters.
    - **content**: 20 to 5000 characters.
    - **category**: One of ``ForumCategory``.
    - **tags**: At most 5.
    """
    post = ForumPost(
        **payload.model_dump(),
        excerpt=make_excerpt(payload.content),
        author_id=user.id,
        author_name=user.name or user.email,
    )
    session.add(post)
    await session.commit()
    await session.refresh(post)
    logger.info(f"User {user.id} created forum post {post.id}")
    return PostEnvelope(message="Post created successfully", post=post_read(post))


@router.put(
    "/posts/{post_id}",
    response_model=PostEnvelope,
    summary="Update Post",
    description="Partially update a post. Author only.",
    responses={
        403: {"description": "Not the author"},
        404: {"description": "Post not found"},
    },
)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> PostEnvelope:
    post = await _get_post(session, post_id)
    if post.author_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to update this post")

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(post, key, value.strip() if isinstance(value, str) and key in ("title", "content") else value)
    post.excerpt = make_excerpt(post.content)
    post.updated_at = datetime.utcnow()
    session.add(post)
    await session.commit()
    await session.refresh(post)
    return PostEnvelope(message="Post updated successfully", post=post_read(post))


@router.delete(
    "/posts/{post_id}",
    response_model=MessageResponse,
    summary="Delete Post",
    description="Delete a post and its replies. Author only.",
    responses={
        403: {"description": "Not the author"},
        404: {"description": "Post not found"},
    },
)
async def delete_post(
    post_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    post = await _get_post(session, post_id)
    if post.author_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this post")

    await session.execute(delete(ForumReply).where(ForumReply.post_id == post.id))
    await session.delete(post)
    await session.commit()
    return MessageResponse(message="Post deleted successfully")


@router.post(
    "/posts/{post_id}/like",
    response_model=LikeResponse,
    summary="Toggle Like",
    description="Like the post, or remove the caller's like if already liked.",
    responses={404: {"description": "Post not found"}},
)
async def like_post(
    post_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> LikeResponse:
    post = await _get_post(session, post_id)
    liked = toggle_like(post, user.id)
    session.add(post)
    await session.commit()
    await session.refresh(post)
    return LikeResponse(message="Post liked" if liked else "Post unliked", liked=liked, like_count=post.like_count)


@router.post(
    "/posts/{post_id}/reply",
    response_model=ReplyEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Reply To Post",
    responses={
        201: {"description": "Reply added"},
        400: {"description": "Reply must be 10 to 2000 characters"},
        404: {"description": "Post not found"},
    },
)
async def reply_to_post(
    post_id: int,
    payload: ReplyCreate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> ReplyEnvelope:
    post = await _get_post(session, post_id)
    reply = ForumReply(post_id=post.id, author_id=user.id, author_name=user.name or user.email, content=payload.content)
    session.add(reply)
    await session.flush()

    count = await session.execute(select(func.count()).select_from(ForumReply).where(ForumReply.post_id == post.id))
    post.reply_count = count.scalar_one()
    post.last_activity = datetime.utcnow()
    session.add(post)
    await session.commit()
    await session.refresh(reply)
    return ReplyEnvelope(message="Reply added successfully", reply=ForumReplyRead.model_validate(reply))


@router.get(
    "/categories",
    response_model=list[CategoryCount],
    summary="Forum Categories",
    description="Number of active posts per category, most populated first.",
)
async def forum_categories(session: AsyncSession = Depends(get_session)) -> list[CategoryCount]:
    count = func.count(ForumPost.id).label("count")
    result = await session.execute(
        select(ForumPost.category, count)
        .where(ForumPost.status == PostStatus.ACTIVE)
        .group_by(ForumPost.category)
        .order_by(count.desc())
    )
    return [CategoryCount(name=category.value, count=total) for category, total in result.all()]


@router.get(
    "/stats",
    response_model=ForumStats,
    summary="Forum Stats",
    description="Totals over all posts.",
)
async def forum_stats(session: AsyncSession = Depends(get_session)) -> ForumStats:
    result = await session.execute(
        select(
            func.count(ForumPost.id),
            func.coalesce(func.sum(ForumPost.views), 0),
            func.coalesce(func.sum(ForumPost.reply_count), 0),
            func.coalesce(func.sum(ForumPost.like_count), 0),
        )
    )
    posts, views, replies, likes = result.one()
    return ForumStats(total_posts=posts, total_views=views, total_replies=replies, total_likes=likes)
