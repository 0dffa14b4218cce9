from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin
from backend.database import get_db
from backend.routes.book_routes import BookListResponse, to_list_response
from backend.services import catalog

# JSON API for the back-office; guarded by role dependencies.
api_router = APIRouter(tags=['admin'], dependencies=[Depends(require_admin)])

# Back-office pages; the route guard middleware redirects before these run.
pages_router = APIRouter(tags=['admin'])


class StatsResponse(BaseModel):
    total_books: int
    total_categories: int


@api_router.get('/stats', response_model=StatsResponse)
def get_stats(db: Session = Depends(get_db)):
    return catalog.catalog_stats(db)


@pages_router.get('', response_model=StatsResponse)
def dashboard(db: Session = Depends(get_db)):
    return catalog.catalog_stats(db)


@pages_router.get('/books', response_model=BookListResponse)
def admin_books(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    result = catalog.list_books(
        db,
        page=page,
        limit=limit,
        search=search,
        default_limit=catalog.ADMIN_PAGE_SIZE,
    )
    return to_list_response(result)
