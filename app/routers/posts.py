from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import PaginationParams, SearchParams, get_current_user_id
from app.pagination import MAX_PAGE_NUMBER
from app.schemas import CommentCreate, PostCreate, PostPage, PostUpdate
from app.services import comment_service, post_service
from app.services.post_service import InvalidFilterColumn

router = APIRouter(
    prefix="/posts",
    tags=["posts"],
    dependencies=[Depends(get_current_user_id)],
)

# ---------------------------------------------------------------------------
# Listing and search
# ---------------------------------------------------------------------------

@router.get("", response_model=PostPage)
async def search_posts(
    pagination: PaginationParams = Depends(),
    search: SearchParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await post_service.query_posts(
            db,
            pagination.page,
            pagination.limit,
            search.colname,
            search.searchtext,
            pagination.sort_by,
            pagination.sort_order,
        )
    except InvalidFilterColumn:
        raise HTTPException(status_code=400, detail="Invalid colname parameter")

@router.get("/page/{page_num}/{page_limit}", response_model=PostPage)
async def page_posts(
    page_num: int = Path(le=MAX_PAGE_NUMBER),
    page_limit: int = Path(),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_posts(db, page_num, page_limit)

@router.get("/page/{page_num}/{page_limit}/{sort_by}/{sort_order}", response_model=PostPage)
async def page_posts_sorted(
    page_num: int = Path(le=MAX_PAGE_NUMBER),
    page_limit: int = Path(),
    sort_by: str = Path(),
    sort_order: str = Path(),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_posts(db, page_num, page_limit, sort_by, sort_order)

@router.get("/user/{owner_id}")
async def list_user_posts(owner_id: str, db: AsyncSession = Depends(get_db)):
    return {"posts": await post_service.get_posts_by_user(db, owner_id)}

# ---------------------------------------------------------------------------
# Single post
# ---------------------------------------------------------------------------

@router.get("/{post_id}")
async def get_post(post_id: str, db: AsyncSession = Depends(get_db)):
    post = await post_service.get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"post": post}

@router.get("/{post_id}/user")
async def get_own_post(
    post_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.get_user_post(db, post_id, user_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"post": post}

@router.post("", status_code=201)
async def create_post(
    data: PostCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return {"post": await post_service.create_post(db, data, user_id)}

@router.put("/{post_id}")
async def update_post(
    post_id: str,
    data: PostUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.update_post(db, post_id, data, user_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"post": post}

@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    deleted = await post_service.delete_post(db, post_id, user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"message": "Post deleted successfully"}

# ---------------------------------------------------------------------------
# Comments and likes
# ---------------------------------------------------------------------------

@router.get("/{post_id}/comments")
async def list_comments(post_id: str, db: AsyncSession = Depends(get_db)):
    comments = await comment_service.get_comments(db, post_id)
    if comments is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"comments": comments}

@router.post("/{post_id}/comments", status_code=201)
async def add_comment(
    post_id: str,
    data: CommentCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.add_comment(db, post_id, data, user_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"comment": comment}

@router.post("/{post_id}/likes")
async def like_post(
    post_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.like_post(db, post_id, user_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"post": post}

@router.delete("/{post_id}/likes")
async def unlike_post(
    post_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.unlike_post(db, post_id, user_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"post": post}
