from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.pagination import MAX_PAGE_NUMBER, clamp_pagination, normalize_sort_order
from app.security import decode_access_token
from app.services import user_service

bearer = HTTPBearer(auto_error=False)


async def get_current_user_id(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> str:
    """
    Resolve the authenticated user id from the ``Authorization: Bearer``
    header, provisioning the user row on first sight.

    Raises 401 when the header is missing, the token does not verify, or
    the user is unknown / soft-deleted.
    """
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    claims = decode_access_token(creds.credentials)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await user_service.ensure_user(
        db, claims["sub"], claims.get("email"), claims.get("name")
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user.id


class PaginationParams:
    """
    Reusable FastAPI dependency that parses pagination / sorting query
    parameters for the post search endpoint.

    Attributes
    ----------
    page:
        1-based page number; values below 1 are treated as 1.  Values
        above ``MAX_PAGE_NUMBER`` fail validation.
    limit:
        Items per page; 0 or negative means ``settings.DEFAULT_PAGE_SIZE``,
        and the value is capped at ``settings.MAX_PAGE_SIZE``.
    sort_by:
        Requested sort column.  The service layer maps it through an
        allow-list before it reaches SQLAlchemy.
    sort_order:
        ``"asc"`` or ``"desc"`` (anything else becomes ``"desc"``).
    """

    def __init__(
        self,
        page: int = Query(1, le=MAX_PAGE_NUMBER, description="Page number (1-based)."),
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            description="Number of posts per page.",
        ),
        sort_by: str = Query("created_at", description="Column name to sort results by."),
        sort_order: str = Query("desc", description="Sort direction: 'asc' or 'desc'."),
    ) -> None:
        self.page, self.limit = clamp_pagination(page, limit)
        self.sort_by = sort_by
        self.sort_order = normalize_sort_order(sort_order)


class SearchParams:
    """Optional ``colname`` / ``searchtext`` filter for the post search endpoint."""

    def __init__(
        self,
        colname: str = Query("", description="Column name to filter by."),
        searchtext: str = Query("", description="Search text for filtering."),
    ) -> None:
        self.colname = colname.strip()
        self.searchtext = searchtext.strip()
