from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import get_settings
from .api.routers import health as health_router
from .api.routers import tickets as tickets_router
from .api.routers import metrics as metrics_router
from .observability.logging import setup_logging
from .middleware.request_context import RequestContextMiddleware
from .observability.metrics import MetricsHTTPMiddleware
import uvicorn

settings = get_settings()
setup_logging()

def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[settings.REQUEST_ID_HEADER],
    )

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(MetricsHTTPMiddleware)

    app.include_router(health_router.router)
    app.include_router(tickets_router.router)
    app.include_router(metrics_router.router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("careable.main:app", host=settings.APP_HOST, port=settings.APP_PORT, reload=settings.ENV == "dev")
