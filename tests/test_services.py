"""
Direct service-layer tests — exercises business logic without HTTP overhead.

These tests call service functions directly with a database session, giving
coverage of the SQLAlchemy query paths, soft deletion and the search
predicate builder independently of routing and auth.
"""
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import SocialMediaComment, SocialMediaLike, Task, User
from app.schemas import CommentCreate, PostCreate, PostUpdate, TaskCreate, TaskUpdate
from app.services import comment_service, post_service, task_service, user_service


# ---------------------------------------------------------------------------
# task_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_get_task_via_service(db_session: AsyncSession, users):
    alice, _ = users
    created = await task_service.create_task(
        db_session, TaskCreate(title="Service task", description="D"), alice.id
    )
    assert created["user_id"] == alice.id

    fetched = await task_service.get_task(db_session, created["id"], alice.id)
    assert fetched == created


@pytest.mark.asyncio
async def test_get_task_scoped_to_owner(db_session: AsyncSession, users):
    alice, bob = users
    created = await task_service.create_task(db_session, TaskCreate(title="Private"), alice.id)
    assert await task_service.get_task(db_session, created["id"], bob.id) is None


@pytest.mark.asyncio
async def test_get_tasks_newest_first(db_session: AsyncSession, users):
    alice, _ = users
    for title in ("first", "second", "third"):
        await task_service.create_task(db_session, TaskCreate(title=title), alice.id)

    titles = [t["title"] for t in await task_service.get_tasks(db_session, alice.id)]
    assert titles == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_update_task_partial(db_session: AsyncSession, users):
    alice, _ = users
    created = await task_service.create_task(
        db_session, TaskCreate(title="Old", description="Keep"), alice.id
    )
    updated = await task_service.update_task(
        db_session, created["id"], TaskUpdate(completed=True), alice.id
    )
    assert updated is not None
    assert updated["title"] == "Old"
    assert updated["description"] == "Keep"
    assert updated["completed"] is True


@pytest.mark.asyncio
async def test_delete_task_is_soft(db_session: AsyncSession, users):
    """Deleted tasks keep their row with deleted_at set."""
    alice, _ = users
    created = await task_service.create_task(db_session, TaskCreate(title="Gone"), alice.id)

    assert await task_service.delete_task(db_session, created["id"], alice.id) is True
    assert await task_service.get_task(db_session, created["id"], alice.id) is None
    assert await task_service.update_task(
        db_session, created["id"], TaskUpdate(title="Back"), alice.id
    ) is None

    row = (await db_session.execute(select(Task).where(Task.id == created["id"]))).scalar_one()
    assert row.deleted_at is not None


@pytest.mark.asyncio
async def test_delete_nonexistent_task_service(db_session: AsyncSession, users):
    alice, _ = users
    assert await task_service.delete_task(db_session, "nope", alice.id) is False


# ---------------------------------------------------------------------------
# post_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_posts_empty(db_session: AsyncSession):
    page = await post_service.query_posts(db_session)
    assert page.posts == []
    assert page.total_count == 0
    assert page.total_pages == 0


@pytest.mark.asyncio
async def test_query_posts_with_filter(db_session: AsyncSession, users):
    alice, _ = users
    for text in ("alpha one", "alpha two", "beta"):
        await post_service.create_post(db_session, PostCreate(post_text=text), alice.id)

    page = await post_service.query_posts(
        db_session, page=1, limit=1, colname="post_text", searchtext="ALPHA",
        sort_by="post_text", sort_order="asc",
    )
    assert page.total_count == 3
    assert page.filtered_count == 2
    assert page.total_pages == 2
    assert [p["post_text"] for p in page.posts] == ["alpha one"]


@pytest.mark.asyncio
async def test_query_posts_rejects_unknown_column(db_session: AsyncSession):
    with pytest.raises(post_service.InvalidFilterColumn):
        await post_service.query_posts(db_session, colname="password", searchtext="x")


@pytest.mark.asyncio
async def test_query_posts_ignores_column_without_text(db_session: AsyncSession, users):
    alice, _ = users
    await post_service.create_post(db_session, PostCreate(post_text="anything"), alice.id)
    page = await post_service.query_posts(db_session, colname="password", searchtext="")
    assert page.filtered_count == 1


@pytest.mark.asyncio
async def test_get_posts_clamps_arguments(db_session: AsyncSession, users):
    alice, _ = users
    await post_service.create_post(db_session, PostCreate(post_text="one"), alice.id)
    page = await post_service.get_posts(db_session, page=-1, limit=-1)
    assert page.current_page == 1
    assert page.page_size == 10
    assert len(page.posts) == 1


@pytest.mark.asyncio
async def test_update_post_scoped_to_owner(db_session: AsyncSession, users):
    alice, bob = users
    created = await post_service.create_post(db_session, PostCreate(post_text="mine"), alice.id)

    assert await post_service.update_post(
        db_session, created["post_id"], PostUpdate(post_text="theirs"), bob.id
    ) is None

    updated = await post_service.update_post(
        db_session, created["post_id"], PostUpdate(post_image="pic.png"), alice.id
    )
    assert updated is not None
    assert updated["post_text"] == "mine"
    assert updated["post_image"] == "pic.png"


@pytest.mark.asyncio
async def test_delete_post_removes_side_rows(db_session: AsyncSession, users):
    alice, bob = users
    created = await post_service.create_post(db_session, PostCreate(post_text="busy"), alice.id)
    post_id = created["post_id"]
    await comment_service.add_comment(db_session, post_id, CommentCreate(comment_text="hi"), bob.id)
    await post_service.like_post(db_session, post_id, bob.id)

    assert await post_service.delete_post(db_session, post_id, alice.id) is True

    comments = (
        await db_session.execute(
            select(func.count()).select_from(SocialMediaComment).where(SocialMediaComment.post_id == post_id)
        )
    ).scalar_one()
    likes = (
        await db_session.execute(
            select(func.count()).select_from(SocialMediaLike).where(SocialMediaLike.post_id == post_id)
        )
    ).scalar_one()
    assert comments == 0
    assert likes == 0
    assert await post_service.get_post(db_session, post_id) is None


@pytest.mark.asyncio
async def test_like_counter_tracks_rows(db_session: AsyncSession, users):
    alice, bob = users
    created = await post_service.create_post(db_session, PostCreate(post_text="likeable"), alice.id)
    post_id = created["post_id"]

    await post_service.like_post(db_session, post_id, alice.id)
    await post_service.like_post(db_session, post_id, alice.id)
    liked = await post_service.like_post(db_session, post_id, bob.id)
    assert liked["likes"] == 2

    unliked = await post_service.unlike_post(db_session, post_id, alice.id)
    assert unliked["likes"] == 1
    assert unliked["is_liked"] is True


@pytest.mark.asyncio
async def test_like_when_row_already_written_elsewhere(db_session: AsyncSession, users):
    """A like row committed by a parallel request turns this like into a no-op."""
    alice, _ = users
    created = await post_service.create_post(db_session, PostCreate(post_text="racy"), alice.id)
    post_id = created["post_id"]
    db_session.add(SocialMediaLike(like_id="existing-like", post_id=post_id, user_id=alice.id))
    await db_session.flush()

    liked = await post_service.like_post(db_session, post_id, alice.id)
    assert liked["likes"] == 1
    assert liked["is_liked"] is True

    rows = (
        await db_session.execute(
            select(func.count()).select_from(SocialMediaLike).where(SocialMediaLike.post_id == post_id)
        )
    ).scalar_one()
    assert rows == 1


def test_like_insert_skips_duplicates_on_postgresql():
    stmt = post_service._like_insert("postgresql", "p1", "u1")
    sql = str(stmt.compile(dialect=postgresql.dialect()))
    assert "ON CONFLICT (post_id, user_id) DO NOTHING" in sql


def test_like_insert_unavailable_without_on_conflict():
    assert post_service._like_insert("mssql", "p1", "u1") is None


@pytest.mark.asyncio
async def test_get_posts_by_user_via_service(db_session: AsyncSession, users):
    alice, bob = users
    await post_service.create_post(db_session, PostCreate(post_text="a"), alice.id)
    await post_service.create_post(db_session, PostCreate(post_text="b"), bob.id)
    posts = await post_service.get_posts_by_user(db_session, bob.id)
    assert [p["post_text"] for p in posts] == ["b"]


# ---------------------------------------------------------------------------
# Search predicate
# ---------------------------------------------------------------------------

def _fake_session(dialect_name: str):
    bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect_name))
    return SimpleNamespace(get_bind=lambda: bind)


def test_post_text_uses_fulltext_on_postgresql():
    predicate = post_service._search_predicate(_fake_session("postgresql"), "post_text", "hel wor")
    compiled = predicate.compile(dialect=postgresql.dialect())
    sql = str(compiled)
    assert "to_tsvector" in sql
    assert "@@" in sql
    assert "hel:* & wor:*" in compiled.params.values()


def test_post_text_uses_like_elsewhere():
    predicate = post_service._search_predicate(_fake_session("sqlite"), "post_text", "50%")
    compiled = predicate.compile(dialect=sqlite.dialect())
    assert "LIKE" in str(compiled)
    assert "%50\\%%" in compiled.params.values()


def test_other_columns_use_like_on_postgresql():
    predicate = post_service._search_predicate(_fake_session("postgresql"), "post_image", "cat")
    sql = str(predicate.compile(dialect=postgresql.dialect()))
    assert "to_tsvector" not in sql
    assert "ILIKE" in sql


def test_wordless_fulltext_search_falls_back_to_like():
    predicate = post_service._search_predicate(_fake_session("postgresql"), "post_text", "!!!")
    sql = str(predicate.compile(dialect=postgresql.dialect()))
    assert "ILIKE" in sql


def test_to_prefix_tsquery():
    assert post_service.to_prefix_tsquery("hello, world!") == "hello:* & world:*"
    assert post_service.to_prefix_tsquery("  ") == ""
    assert post_service.to_prefix_tsquery("a'b | c") == "a:* & b:* & c:*"


def test_escape_like():
    assert post_service.escape_like("100%_\\") == "100\\%\\_\\\\"
    assert post_service.escape_like("plain") == "plain"


# ---------------------------------------------------------------------------
# comment_service / user_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_comment_nonexistent_post_service(db_session: AsyncSession, users):
    alice, _ = users
    result = await comment_service.add_comment(
        db_session, "missing", CommentCreate(comment_text="hello"), alice.id
    )
    assert result is None
    assert await comment_service.get_comments(db_session, "missing") is None


@pytest.mark.asyncio
async def test_ensure_user_provisions_once(db_session: AsyncSession):
    first = await user_service.ensure_user(db_session, "new-user", "new@example.com", "New")
    again = await user_service.ensure_user(db_session, "new-user", "other@example.com", "Other")
    assert first is not None
    assert again is first
    assert again.email == "new@example.com"

    count = (await db_session.execute(select(func.count()).select_from(User))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_ensure_user_rejects_taken_email(db_session: AsyncSession, users):
    assert await user_service.ensure_user(db_session, "impostor", "alice@example.com", "A") is None


@pytest.mark.asyncio
async def test_ensure_user_without_email(db_session: AsyncSession):
    user = await user_service.ensure_user(db_session, "anon")
    assert user is not None
    assert user.email == "anon@users.invalid"
    assert user.name == "anon@users.invalid"


@pytest.mark.asyncio
async def test_get_user_via_service(db_session: AsyncSession, users):
    alice, _ = users
    data = await user_service.get_user(db_session, alice.id)
    assert data is not None
    assert data["email"] == "alice@example.com"
    assert await user_service.get_user(db_session, "missing") is None
