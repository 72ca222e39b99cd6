from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from loguru import logger
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.errors import ServerErrorMiddleware

from garden import settings
from garden.common.exceptions import (
    APIException,
    InternalException,
    api_exception_handler,
    inbound_validation_exception_handler,
    internal_exception_handler,
)
from garden.common.middleware import HTTPAppContextMiddleware
from garden.common.request import RequestResponseMiddleware
from garden.common.security_headers import SecurityHeadersMiddleware
from garden.core.authentication.rate_limit import limiter, rate_limit_exceeded_handler
from garden.core.verification.sweeper import CodeSweeper, build_code_store
from garden.network.database.middleware import HTTPSessionManagerMiddleware
from garden.network.http.router import api_router
from garden.setup import create_tables
from garden.setup import run as setup

if settings.SENTRY_DSN and not settings.USE_MOCK_SENTRY_CLIENT:

    def traces_sampler(sampling_context):
        """
        Custom filter for sentry traces
        """
        IGNORE_PATHS = {
            # Healthchecks using up the majority of our transaction bandwidth
            '/health',
        }
        if 'asgi_scope' in sampling_context:
            if sampling_context['asgi_scope']['path'] in IGNORE_PATHS:
                # Dont send for anything in ignore
                return 0

        return settings.SENTRY_DEFAULT_SAMPLE_RATE

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        ignore_errors=[APIException],
        environment=settings.ENVIRONMENT,
        integrations=[
            # Both integrations must be instantiated
            StarletteIntegration(),
            FastApiIntegration(),
        ],
        traces_sampler=traces_sampler,
    )


async def on_startup(app: FastAPI):
    setup()
    if settings.DB_AUTO_CREATE_TABLES:
        create_tables()

    # One store per process, shared by every request through app.state
    app.state.code_store = build_code_store()
    app.state.code_sweeper = CodeSweeper(app.state.code_store)
    app.state.code_sweeper.start()

    logger.info(f'{app.title} is ready!')
    if settings.IS_LOCAL:
        logger.info(f'check out API docs here: {settings.HOST}/docs')


async def on_shutdown(app: FastAPI):
    # The sweep timer must not outlive the app
    app.state.code_sweeper.shutdown()
    logger.info('💀 Shutting down!')


@asynccontextmanager
async def lifespan(app: FastAPI):
    await on_startup(app)
    yield
    await on_shutdown(app)


server = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    openapi_url=f'{settings.API_PREFIX}/openapi.json' if settings.IS_LOCAL else None,
    generate_unique_id_function=lambda route: route.name,
    lifespan=lifespan,
    redirect_slashes=False,
    version='0.1.0',
    docs_url='/docs' if settings.IS_LOCAL else None,
    redoc_url='/redoc' if settings.IS_LOCAL else None,
    separate_input_output_schemas=False,
)

# Middlewares are inserted(0) last will run first!
# Add security headers to all responses
server.add_middleware(SecurityHeadersMiddleware)
# Handle database transaction for request lifecycle
server.add_middleware(HTTPSessionManagerMiddleware, commit_on_success=settings.ATOMIC_REQUESTS)
server.add_middleware(RequestResponseMiddleware)
server.add_middleware(HTTPAppContextMiddleware)

if settings.DEBUG:
    # This serves up traceback responses
    server.add_middleware(ServerErrorMiddleware, debug=True)

# Custom exception handler
server.exception_handler(RequestValidationError)(inbound_validation_exception_handler)
server.exception_handler(InternalException)(internal_exception_handler)
server.exception_handler(APIException)(api_exception_handler)
server.exception_handler(RateLimitExceeded)(rate_limit_exceeded_handler)

# Read by the slowapi route decorators
server.state.limiter = limiter


# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    server.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=settings.CORS_ALLOWED_METHODS,
        allow_headers=settings.CORS_ALLOWED_HEADERS,
    )

server.include_router(api_router, prefix=settings.API_PREFIX)
