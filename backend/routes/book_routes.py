from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin
from backend.database import get_db
from backend.services import catalog
from backend.services.catalog import BookPage, FieldUpdate

router = APIRouter(tags=['books'])


class BookFields(BaseModel):
    code: str | None = Field(default=None, max_length=50)
    author: str | None = Field(default=None, max_length=255)
    price: str | None = Field(default=None, max_length=50)
    category: str | None = Field(default=None, max_length=100)


class CreateBookRequest(BookFields):
    title: str | None = Field(default=None, max_length=255)


class UpdateBookRequest(BookFields):
    title: str | None = Field(default=None, max_length=255)

    def to_field_updates(self) -> dict[str, FieldUpdate]:
        updates = {}
        for name in catalog.EDITABLE_FIELDS:
            if name not in self.model_fields_set:
                updates[name] = catalog.UNCHANGED
                continue
            value = getattr(self, name)
            if value is None or value == '':
                updates[name] = catalog.CLEAR
            else:
                updates[name] = FieldUpdate.set_to(value)
        return updates


class BookResponse(BaseModel):
    id: str
    code: str | None = None
    title: str
    author: str | None = None
    price: str | None = None
    category: str | None = None

    class Config:
        from_attributes = True


class BookListResponse(BaseModel):
    items: list[BookResponse]
    total_count: int = Field(alias='totalCount')
    page: int
    limit: int
    total_pages: int = Field(alias='totalPages')

    class Config:
        populate_by_name = True


class MessageResponse(BaseModel):
    message: str


def to_list_response(result: BookPage) -> BookListResponse:
    return BookListResponse(
        items=[BookResponse.model_validate(book) for book in result.items],
        total_count=result.total_count,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get('/books', response_model=BookListResponse)
def list_books(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    result = catalog.list_books(db, page=page, limit=limit, search=search)
    return to_list_response(result)


@router.get('/books/{book_id}', response_model=BookResponse)
def get_book(book_id: str, db: Session = Depends(get_db)):
    return catalog.get_book(db, book_id)


@router.post(
    '/books',
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_book(data: CreateBookRequest, db: Session = Depends(get_db)):
    return catalog.create_book(db, data.model_dump())


@router.put('/books/{book_id}', response_model=BookResponse, dependencies=[Depends(require_admin)])
def update_book(book_id: str, data: UpdateBookRequest, db: Session = Depends(get_db)):
    return catalog.update_book(db, book_id, data.to_field_updates())


@router.delete('/books/{book_id}', response_model=MessageResponse, dependencies=[Depends(require_admin)])
def delete_book(book_id: str, db: Session = Depends(get_db)):
    catalog.delete_book(db, book_id)
    return MessageResponse(message='Book deleted.')


@router.get('/categories', response_model=list[str])
def list_categories(db: Session = Depends(get_db)):
    return catalog.list_categories(db)


@router.get('/categories/{slug}/books', response_model=BookListResponse)
def list_category_books(
    slug: str,
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    category = catalog.category_for_slug(db, slug)
    result = catalog.list_books(
        db,
        page=page,
        limit=limit,
        search=search,
        category=category,
        default_limit=catalog.CATEGORY_GRID_PAGE_SIZE,
    )
    return to_list_response(result)


# Storefront grid views; same contract, larger default pages.
storefront_router = APIRouter(tags=['storefront'])


@storefront_router.get('/books', response_model=BookListResponse)
def catalog_grid(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    result = catalog.list_books(
        db,
        page=page,
        limit=limit,
        default_limit=catalog.CATALOG_GRID_PAGE_SIZE,
    )
    return to_list_response(result)


@storefront_router.get('/books/search', response_model=BookListResponse)
def search_grid(
    q: str | None = Query(default=None),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    result = catalog.list_books(
        db,
        page=page,
        limit=limit,
        search=q,
        default_limit=catalog.SEARCH_GRID_PAGE_SIZE,
    )
    return to_list_response(result)
