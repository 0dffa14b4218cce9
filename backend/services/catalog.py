"""Catalog queries and mutations.

Listing turns loose ``page``/``limit``/``search`` parameters into a bounded,
deterministic page plus the matching total. Mutations raise the errors from
``backend.core.errors`` and never leak storage exceptions to callers.
"""

import enum
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import distinct, func, or_, select, true
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from backend.core.errors import ConflictError, NotFoundError, UnexpectedError, ValidationError
from backend.models.book import Book

logger = logging.getLogger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 100
# Keeps the row offset inside a signed 64-bit integer on every backend.
MAX_PAGE = 10_000_000

PUBLIC_PAGE_SIZE = 10
ADMIN_PAGE_SIZE = 15
SEARCH_GRID_PAGE_SIZE = 24
CATEGORY_GRID_PAGE_SIZE = 24
CATALOG_GRID_PAGE_SIZE = 48

SEARCHABLE_FIELDS = ("title", "author", "code", "category")
OPTIONAL_FIELDS = ("code", "author", "price", "category")
EDITABLE_FIELDS = ("title",) + OPTIONAL_FIELDS
UNIQUE_FIELDS = ("code",)


class FieldAction(str, enum.Enum):
    UNCHANGED = "unchanged"
    SET = "set"
    CLEAR = "clear"


@dataclass(frozen=True)
class FieldUpdate:
    action: FieldAction
    value: Any = None

    @classmethod
    def set_to(cls, value: Any) -> "FieldUpdate":
        return cls(FieldAction.SET, value)


UNCHANGED = FieldUpdate(FieldAction.UNCHANGED)
CLEAR = FieldUpdate(FieldAction.CLEAR)


@dataclass
class BookPage:
    items: list[Book] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    limit: int = PUBLIC_PAGE_SIZE
    total_pages: int = 0


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def normalize_page(value: Any) -> int:
    page = _to_int(value)
    if page is None or page < 1:
        return 1
    return min(page, MAX_PAGE)


def normalize_limit(value: Any, default: int = PUBLIC_PAGE_SIZE) -> int:
    limit = _to_int(value)
    if limit is None:
        limit = default
    return max(MIN_LIMIT, min(MAX_LIMIT, limit))


def count_pages(total_count: int, limit: int) -> int:
    if total_count <= 0:
        return 0
    return math.ceil(total_count / limit)


def search_filter(search: str | None):
    term = (search or "").strip()
    if not term:
        return None
    return or_(
        *(getattr(Book, name).icontains(term, autoescape=True) for name in SEARCHABLE_FIELDS)
    )


def build_filters(search: str | None = None, category: str | None = None) -> list:
    filters = []
    term_filter = search_filter(search)
    if term_filter is not None:
        filters.append(term_filter)
    if category:
        filters.append(func.lower(Book.category) == category.strip().lower())
    return filters


def list_books(
    db: Session,
    page: Any = None,
    limit: Any = None,
    search: str | None = None,
    category: str | None = None,
    default_limit: int = PUBLIC_PAGE_SIZE,
) -> BookPage:
    page = normalize_page(page)
    limit = normalize_limit(limit, default_limit)
    skip = (page - 1) * limit
    filters = build_filters(search, category)

    # Count and page come back from one statement so they share a snapshot.
    counted = select(func.count(Book.id).label("total_count")).where(*filters).subquery()
    page_rows = (
        select(Book)
        .where(*filters)
        .order_by(Book.title.asc(), Book.id.asc())
        .offset(skip)
        .limit(limit)
        .subquery()
    )
    page_book = aliased(Book, page_rows)
    statement = (
        select(counted.c.total_count, page_book)
        .select_from(counted)
        .outerjoin(page_rows, true())
        .order_by(page_rows.c.title.asc(), page_rows.c.id.asc())
    )

    try:
        rows = db.execute(statement).all()
    except (SQLAlchemyError, OverflowError) as exc:
        logger.exception("Failed to list books")
        raise UnexpectedError("Failed to fetch books on the server.") from exc

    total_count = rows[0].total_count if rows else 0
    items = [row[1] for row in rows if row[1] is not None]

    return BookPage(
        items=items,
        total_count=total_count,
        page=page,
        limit=limit,
        total_pages=count_pages(total_count, limit),
    )


def get_book(db: Session, book_id: str) -> Book:
    try:
        book = db.get(Book, book_id)
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch book %s", book_id)
        raise UnexpectedError("Failed to fetch the book on the server.") from exc

    if book is None:
        raise NotFoundError("Book not found.")
    return book


def _clean_optional(value: Any) -> Any:
    if isinstance(value, str) and value == "":
        return None
    return value


def _conflicting_fields(exc: IntegrityError) -> list[str]:
    message = str(getattr(exc, "orig", exc)).lower()
    return [name for name in UNIQUE_FIELDS if name in message]


def _conflict_error(exc: IntegrityError) -> ConflictError:
    fields = _conflicting_fields(exc)
    target = ", ".join(fields) if fields else "unique value"
    return ConflictError(f"A book with this {target} already exists.", fields=fields)


def create_book(db: Session, fields: dict) -> Book:
    title = fields.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("The 'title' field is required and cannot be empty.")

    book = Book(
        title=title.strip(),
        **{name: _clean_optional(fields.get(name)) for name in OPTIONAL_FIELDS},
    )
    try:
        db.add(book)
        db.commit()
        db.refresh(book)
    except IntegrityError as exc:
        db.rollback()
        raise _conflict_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create book")
        raise UnexpectedError("Failed to create the book on the server.") from exc

    logger.info("Created book %s", book.id)
    return book


def update_book(db: Session, book_id: str, updates: dict[str, FieldUpdate]) -> Book:
    changes = {
        name: update
        for name, update in updates.items()
        if name in EDITABLE_FIELDS and update.action is not FieldAction.UNCHANGED
    }
    if not changes:
        raise ValidationError("No data provided for update.")

    title_update = changes.get("title")
    if title_update is not None:
        if title_update.action is FieldAction.CLEAR:
            raise ValidationError("The book title cannot be empty.")
        if not isinstance(title_update.value, str) or not title_update.value.strip():
            raise ValidationError("The book title cannot be empty.")

    book = get_book(db, book_id)

    for name, update in changes.items():
        if update.action is FieldAction.CLEAR:
            setattr(book, name, None)
        elif name == "title":
            book.title = update.value.strip()
        else:
            setattr(book, name, _clean_optional(update.value))

    try:
        db.commit()
        db.refresh(book)
    except IntegrityError as exc:
        db.rollback()
        raise _conflict_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update book %s", book_id)
        raise UnexpectedError("Failed to update the book on the server.") from exc

    logger.info("Updated book %s", book.id)
    return book


def delete_book(db: Session, book_id: str) -> None:
    book = get_book(db, book_id)
    try:
        db.delete(book)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete book %s", book_id)
        raise UnexpectedError("Failed to delete the book on the server.") from exc

    logger.info("Deleted book %s", book_id)


def list_categories(db: Session) -> list[str]:
    try:
        rows = db.execute(
            select(distinct(Book.category))
            .where(Book.category.is_not(None), Book.category != "")
            .order_by(Book.category.asc())
        ).scalars().all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to list categories")
        raise UnexpectedError("Failed to fetch categories on the server.") from exc
    return [name for name in rows if name]


def slugify(category: str) -> str:
    return re.sub(r"\s+", "-", category.strip().lower())


def category_for_slug(db: Session, slug: str) -> str:
    wanted = slugify(slug)
    for name in list_categories(db):
        if slugify(name) == wanted:
            return name
    raise NotFoundError("Category not found.")


def catalog_stats(db: Session) -> dict:
    try:
        total_books = db.scalar(select(func.count(Book.id))) or 0
    except SQLAlchemyError as exc:
        logger.exception("Failed to compute catalog stats")
        raise UnexpectedError("Failed to fetch statistics on the server.") from exc
    return {
        "total_books": total_books,
        "total_categories": len(list_categories(db)),
    }
