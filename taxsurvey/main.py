import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taxsurvey.api.v1.router import v1_router
from taxsurvey.core.config import get_settings
from taxsurvey.core.errors import SurveyError
from taxsurvey.core.logging import configure_logging
from taxsurvey.core.middleware import RequestIdMiddleware

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SurveyError)
    async def _survey_error(request: Request, exc: SurveyError):
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(level, "[errors] %s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.kind, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "validation_error",
                "message": "Validation errors",
                "errors": details,
            },
        )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
    )

    # Middleware: Request ID
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    register_error_handlers(app)

    # API v1
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
