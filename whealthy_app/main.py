import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from whealthy_app import config
from whealthy_app.api.routes import router as api_router
from whealthy_app.utils.json_safety import SafeJSONResponse


logger = logging.getLogger(__name__)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Rejected inputs are echoed back and may be NaN/Infinity
    return SafeJSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


def create_app() -> FastAPI:
    config.configure_logging()

    app = FastAPI(
        title="Whealthy Wealth Projection Engine",
        default_response_class=SafeJSONResponse,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(api_router, prefix="/api")

    logger.info("API ready, CORS origins: %s", ", ".join(config.CORS_ORIGINS))
    return app


app = create_app()


def run():
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
