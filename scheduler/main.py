import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from scheduler.core import config
from scheduler.database import Base, check_database, engine, ensure_scheduling_schema
from scheduler.models import appointment, provider, slot  # noqa: F401  registers tables
from scheduler.routes import appointment_routes, chat_routes, provider_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(title='Patient Scheduler API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PATCH', 'OPTIONS'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


def format_validation_errors(errors) -> str:
    messages = []
    for error in errors:
        location = [str(part) for part in error.get('loc', ()) if part != 'body']
        field = '.'.join(location)
        message = error.get('msg', 'Invalid value')
        messages.append(f'{field}: {message}' if field else message)
    return '; '.join(messages) or 'Invalid request.'


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': str(exc.detail)},
        headers=getattr(exc, 'headers', None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning('Validation error for %s: %s', request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'error': format_validation_errors(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error('Database error on %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'error': 'Database error.'},
    )


@app.get('/')
def root():
    return {'status': 'Patient Scheduler API Running'}


@app.get('/health')
def health():
    return {'ok': True, 'database': 'ok' if check_database() else 'unavailable'}


app.include_router(provider_routes.router, prefix='/providers')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(chat_routes.router, prefix='/chat')
