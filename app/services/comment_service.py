"""
Comment service — append-only comments on a SocialMediaPost.

Comments cannot be edited through the API; they disappear with their
post (see ``post_service.delete_post``).
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import SocialMediaComment, SocialMediaPost, isoformat, new_id
from app.schemas import CommentCreate

logger = logging.getLogger(__name__)


def _comment_to_dict(comment: SocialMediaComment) -> dict:
    return {
        "comment_id": comment.comment_id,
        "post_id": comment.post_id,
        "user_id": comment.user_id,
        "comment_text": comment.comment_text,
        "created_at": isoformat(comment.created_at),
        "updated_at": isoformat(comment.updated_at),
    }


async def _post_exists(db: AsyncSession, post_id: str) -> bool:
    result = await db.execute(
        select(SocialMediaPost.post_id).where(SocialMediaPost.post_id == post_id)
    )
    return result.scalar_one_or_none() is not None


async def get_comments(db: AsyncSession, post_id: str) -> list[dict] | None:
    """
    Return the comments on *post_id*, oldest first.

    Returns None when the post does not exist (as opposed to an empty
    list for a post nobody has commented on).
    """
    if not await _post_exists(db, post_id):
        return None

    q = (
        select(SocialMediaComment)
        .where(SocialMediaComment.post_id == post_id)
        .order_by(SocialMediaComment.created_at.asc())
    )
    result = await db.execute(q)
    return [_comment_to_dict(c) for c in result.scalars().all()]


async def add_comment(
    db: AsyncSession,
    post_id: str,
    data: CommentCreate,
    user_id: str,
) -> dict | None:
    """
    Append a comment by *user_id* to *post_id*.

    Returns the serialised comment, or None when the post does not exist.
    """
    if not await _post_exists(db, post_id):
        logger.warning("Comment on missing post", extra={"post_id": post_id, "user_id": user_id})
        return None

    comment = SocialMediaComment(
        comment_id=new_id(),
        post_id=post_id,
        user_id=user_id,
        comment_text=data.comment_text,
    )
    db.add(comment)
    await db.flush()

    logger.info(
        "Comment added",
        extra={"comment_id": comment.comment_id, "post_id": post_id, "user_id": user_id},
    )
    return _comment_to_dict(comment)
