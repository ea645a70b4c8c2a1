"""
Post service — business logic for the SocialMediaPost aggregate.

Design notes
------------
- Column names arriving from the request (``sort_by``, ``colname``) are
  never interpolated into SQL.  They are mapped through allow-lists to
  ORM attributes; unknown sort columns fall back to ``created_at`` and
  unknown filter columns are rejected with ``InvalidFilterColumn``.
- Search text is always a bound parameter.  ``post_text`` uses PostgreSQL
  full-text search with prefix matching (backed by the GIN index created
  in the initial migration); every other column, and every other
  dialect, uses a case-insensitive ``LIKE '%term%'`` with the LIKE
  metacharacters escaped.
- A listing issues one COUNT over the whole table, a second COUNT when a
  filter is active, and one page SELECT.  ``total_pages`` is derived from
  the filtered count so it always agrees with what can be paged through.
- Functions flush but do not commit; the transaction boundary is owned
  by the ``get_db`` dependency.
"""
import logging
import re

from sqlalchemy import asc, delete, desc, func, insert, literal_column, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import SocialMediaComment, SocialMediaLike, SocialMediaPost, isoformat, new_id
from app.pagination import clamp_pagination, normalize_sort_order, offset_for, total_pages
from app.schemas import PostCreate, PostPage, PostUpdate

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column allow-lists
# ---------------------------------------------------------------------------

_SORTABLE_COLUMNS: frozenset[str] = frozenset(
    {"created_at", "updated_at", "likes", "post_text"}
)

_FILTERABLE_COLUMNS: frozenset[str] = frozenset({"post_text", "post_image", "user_id"})

_FULLTEXT_COLUMN = "post_text"
_FTS_CONFIG = literal_column("'simple'::regconfig")

_WORD_RE = re.compile(r"\w+", re.UNICODE)

# Dialects whose INSERT supports ON CONFLICT DO NOTHING.
_CONFLICT_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


class InvalidFilterColumn(ValueError):
    """Raised when a search names a column outside the filter allow-list."""

    def __init__(self, colname: str) -> None:
        super().__init__(f"Column {colname!r} cannot be searched")
        self.colname = colname


def _resolve_sort_column(sort_by: str | None):
    """
    Return the SQLAlchemy column expression for *sort_by*.

    Falls back to ``SocialMediaPost.created_at`` for any unrecognised or
    potentially dangerous column name.
    """
    if sort_by in _SORTABLE_COLUMNS:
        return getattr(SocialMediaPost, sort_by)
    return SocialMediaPost.created_at


def escape_like(text: str) -> str:
    """Escape LIKE metacharacters so *text* matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def to_prefix_tsquery(text: str) -> str:
    """
    Turn free text into a PostgreSQL ``to_tsquery`` string where every word
    is a prefix match and all words must be present: ``"foo ba"`` becomes
    ``"foo:* & ba:*"``.  Returns an empty string when *text* has no words.
    """
    return " & ".join(f"{word}:*" for word in _WORD_RE.findall(text))


def _search_predicate(db: AsyncSession, colname: str, searchtext: str):
    column = getattr(SocialMediaPost, colname)
    if colname == _FULLTEXT_COLUMN and db.get_bind().dialect.name == "postgresql":
        tsquery = to_prefix_tsquery(searchtext)
        if tsquery:
            return func.to_tsvector(_FTS_CONFIG, column).op("@@")(
                func.to_tsquery(_FTS_CONFIG, tsquery)
            )
    return column.ilike(f"%{escape_like(searchtext)}%", escape="\\")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _post_to_dict(post: SocialMediaPost) -> dict:
    return {
        "post_id": post.post_id,
        "user_id": post.user_id,
        "post_text": post.post_text,
        "post_image": post.post_image,
        "likes": post.likes,
        "is_liked": post.is_liked,
        "created_at": isoformat(post.created_at),
        "updated_at": isoformat(post.updated_at),
    }


# ---------------------------------------------------------------------------
# Listing and search
# ---------------------------------------------------------------------------

async def query_posts(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    colname: str = "",
    searchtext: str = "",
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> PostPage:
    """
    Return one page of posts, optionally filtered by *colname* /
    *searchtext*.

    The filter applies only when both are non-empty.  Raises
    ``InvalidFilterColumn`` when *colname* is not filterable.
    """
    page, limit = clamp_pagination(page, limit)
    sort_order = normalize_sort_order(sort_order)

    predicate = None
    if colname and searchtext:
        if colname not in _FILTERABLE_COLUMNS:
            raise InvalidFilterColumn(colname)
        predicate = _search_predicate(db, colname, searchtext)

    # 1. Total count, ignoring the filter
    total_count: int = (
        await db.execute(select(func.count()).select_from(SocialMediaPost))
    ).scalar_one()

    # 2. Filtered count
    if predicate is None:
        filtered_count = total_count
    else:
        filtered_count = (
            await db.execute(
                select(func.count()).select_from(SocialMediaPost).where(predicate)
            )
        ).scalar_one()

    # 3. Page rows; post_id breaks ties so pages never overlap
    sort_col = _resolve_sort_column(sort_by)
    direction = desc if sort_order == "desc" else asc
    posts_q = select(SocialMediaPost)
    if predicate is not None:
        posts_q = posts_q.where(predicate)
    posts_q = (
        posts_q.order_by(direction(sort_col), direction(SocialMediaPost.post_id))
        .offset(offset_for(page, limit))
        .limit(limit)
    )
    posts = (await db.execute(posts_q)).scalars().all()

    return PostPage(
        posts=[_post_to_dict(p) for p in posts],
        total_count=total_count,
        filtered_count=filtered_count,
        current_page=page,
        page_size=limit,
        total_pages=total_pages(filtered_count, limit),
    )


async def get_posts(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> PostPage:
    """Return one unfiltered page of posts."""
    return await query_posts(db, page, limit, sort_by=sort_by, sort_order=sort_order)


# ---------------------------------------------------------------------------
# Single-post reads
# ---------------------------------------------------------------------------

async def _get_post(db: AsyncSession, post_id: str) -> SocialMediaPost | None:
    result = await db.execute(select(SocialMediaPost).where(SocialMediaPost.post_id == post_id))
    return result.scalar_one_or_none()


async def _get_owned_post(db: AsyncSession, post_id: str, user_id: str) -> SocialMediaPost | None:
    result = await db.execute(
        select(SocialMediaPost).where(
            SocialMediaPost.post_id == post_id,
            SocialMediaPost.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def get_post(db: AsyncSession, post_id: str) -> dict | None:
    post = await _get_post(db, post_id)
    if post is None:
        logger.warning("Post not found", extra={"post_id": post_id})
        return None
    return _post_to_dict(post)


async def get_user_post(db: AsyncSession, post_id: str, user_id: str) -> dict | None:
    """Return *post_id* only if it belongs to *user_id*."""
    post = await _get_owned_post(db, post_id, user_id)
    if post is None:
        logger.warning("Post not found for user", extra={"post_id": post_id, "user_id": user_id})
        return None
    return _post_to_dict(post)


async def get_posts_by_user(db: AsyncSession, user_id: str) -> list[dict]:
    """Return every post written by *user_id*, newest first."""
    q = (
        select(SocialMediaPost)
        .where(SocialMediaPost.user_id == user_id)
        .order_by(SocialMediaPost.created_at.desc())
    )
    result = await db.execute(q)
    return [_post_to_dict(p) for p in result.scalars().all()]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, data: PostCreate, user_id: str) -> dict:
    post = SocialMediaPost(
        post_id=new_id(),
        user_id=user_id,
        post_text=data.post_text,
        post_image=data.post_image,
        likes=0,
        is_liked=False,
    )
    db.add(post)
    await db.flush()

    logger.info("Post created", extra={"post_id": post.post_id, "user_id": user_id})
    return _post_to_dict(post)


async def update_post(
    db: AsyncSession, post_id: str, data: PostUpdate, user_id: str
) -> dict | None:
    """
    Apply the fields present in *data* to a post owned by *user_id*.

    Returns None when the post does not exist or belongs to someone else.
    """
    post = await _get_owned_post(db, post_id, user_id)
    if post is None:
        logger.warning("Post not found for update", extra={"post_id": post_id, "user_id": user_id})
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(post, field, value)

    await db.flush()
    logger.info("Post updated", extra={"post_id": post_id, "user_id": user_id})
    return _post_to_dict(post)


async def delete_post(db: AsyncSession, post_id: str, user_id: str) -> bool:
    """
    Delete a post owned by *user_id* together with its comments and likes.

    Returns True on success, False when the post does not exist or
    belongs to someone else.
    """
    post = await _get_owned_post(db, post_id, user_id)
    if post is None:
        logger.warning("Post not found for deletion", extra={"post_id": post_id, "user_id": user_id})
        return False

    # Explicit deletes: SQLite does not enforce ON DELETE CASCADE by default.
    await db.execute(delete(SocialMediaComment).where(SocialMediaComment.post_id == post_id))
    await db.execute(delete(SocialMediaLike).where(SocialMediaLike.post_id == post_id))
    await db.delete(post)
    await db.flush()

    logger.info("Post deleted", extra={"post_id": post_id, "user_id": user_id})
    return True


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------

async def _refresh_like_count(db: AsyncSession, post: SocialMediaPost) -> None:
    await db.flush()
    count = (
        await db.execute(
            select(func.count())
            .select_from(SocialMediaLike)
            .where(SocialMediaLike.post_id == post.post_id)
        )
    ).scalar_one()
    post.likes = count
    post.is_liked = count > 0
    await db.flush()


def _like_insert(dialect_name: str, post_id: str, user_id: str):
    """
    INSERT for one like row that skips an existing (post, user) pair on
    dialects with ``ON CONFLICT``; None elsewhere.
    """
    dialect_insert = _CONFLICT_INSERTS.get(dialect_name)
    if dialect_insert is None:
        return None
    return (
        dialect_insert(SocialMediaLike.__table__)
        .values(like_id=new_id(), post_id=post_id, user_id=user_id)
        .on_conflict_do_nothing(index_elements=["post_id", "user_id"])
    )


async def _insert_like(db: AsyncSession, post_id: str, user_id: str) -> bool:
    """Insert the like row; False when *user_id* already likes *post_id*."""
    stmt = _like_insert(db.get_bind().dialect.name, post_id, user_id)
    if stmt is not None:
        result = await db.execute(stmt)
        return bool(result.rowcount)

    try:
        async with db.begin_nested():
            await db.execute(
                insert(SocialMediaLike.__table__).values(
                    like_id=new_id(), post_id=post_id, user_id=user_id
                )
            )
    except IntegrityError:
        return False
    return True


async def like_post(db: AsyncSession, post_id: str, user_id: str) -> dict | None:
    """
    Record that *user_id* likes *post_id*.  Liking twice, including two
    concurrent requests, is a no-op.

    Returns the updated post, or None when the post does not exist.
    """
    post = await _get_post(db, post_id)
    if post is None:
        return None

    if await _insert_like(db, post_id, user_id):
        logger.info("Post liked", extra={"post_id": post_id, "user_id": user_id})
    await _refresh_like_count(db, post)

    return _post_to_dict(post)


async def unlike_post(db: AsyncSession, post_id: str, user_id: str) -> dict | None:
    """
    Remove *user_id*'s like from *post_id*.  Unliking a post that was not
    liked is a no-op.

    Returns the updated post, or None when the post does not exist.
    """
    post = await _get_post(db, post_id)
    if post is None:
        return None

    result = await db.execute(
        delete(SocialMediaLike).where(
            SocialMediaLike.post_id == post_id,
            SocialMediaLike.user_id == user_id,
        )
    )
    if result.rowcount:
        await _refresh_like_count(db, post)
        logger.info("Post unliked", extra={"post_id": post_id, "user_id": user_id})

    return _post_to_dict(post)
