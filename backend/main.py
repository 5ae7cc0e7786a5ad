import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.booking.repository import AppointmentRepository
from backend.core import config
from backend.database import create_storage
from backend.notifications.dispatcher import NotificationDispatcher
from backend.routes import appointment_routes

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO), format=config.LOG_FORMAT)

logger = logging.getLogger(__name__)


async def render_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': exc.detail},
        headers=getattr(exc, 'headers', None),
    )


async def render_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'error': 'Invalid request body'},
    )


def create_app(
    repository: AppointmentRepository | None = None,
    dispatcher: NotificationDispatcher | None = None,
) -> FastAPI:
    app = FastAPI(title='Appointment Booking API')

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials='*' not in config.CORS_ALLOWED_ORIGINS,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    app.state.repository = repository
    app.state.dispatcher = dispatcher or NotificationDispatcher()

    app.add_exception_handler(StarletteHTTPException, render_http_error)
    app.add_exception_handler(RequestValidationError, render_validation_error)

    @app.on_event('startup')
    def initialize_repository() -> None:
        if app.state.repository is None:
            app.state.repository = AppointmentRepository(create_storage())

    @app.get('/')
    def root():
        return {'status': 'Appointment API Running'}

    app.include_router(appointment_routes.router, prefix='/api')

    return app


app = create_app()


if __name__ == '__main__':
    import uvicorn

    logger.info('Server running at http://localhost:%s', config.PORT)
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
