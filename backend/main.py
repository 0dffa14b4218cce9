import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.auth import guard
from backend.auth.dependencies import extract_token
from backend.auth.sessions import resolve_session
from backend.core import config
from backend.core.errors import AppError
from backend.database import Base, engine
from backend.models import book, user  # noqa: F401
from backend.routes import account_routes, admin_routes, auth_routes, book_routes

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.middleware('http')
async def admin_route_guard(request: Request, call_next):
    # CORS preflights carry no credentials.
    if request.method == 'OPTIONS':
        return await call_next(request)
    session = resolve_session(extract_token(request))
    decision = guard.evaluate(request.url.path, session)
    location = guard.redirect_location(decision, request.url.path, request.url.query)
    if location is not None:
        return RedirectResponse(url=location)
    return await call_next(request)


@app.exception_handler(AppError)
async def app_error_handler(_request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={'error': exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(_request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get('msg', 'Invalid data.') if errors else 'Invalid data.'
    return JSONResponse(status_code=400, content={'error': message})


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.get('/')
def root():
    return {'status': 'Bookstore API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(book_routes.router, prefix='/api')
app.include_router(book_routes.storefront_router)
app.include_router(account_routes.router, prefix='/api/account')
app.include_router(admin_routes.api_router, prefix='/api/admin')
app.include_router(admin_routes.pages_router, prefix='/admin')
