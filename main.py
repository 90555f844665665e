import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.config import settings
from core.errors import PersistenceError
from routes.dev import router as dev_router
from routes.orders import router as orders_router
from routes.payments import router as payments_router
from routes.shops import router as shops_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": {"code": "persistence_error", "message": str(exc), "collection": exc.collection}},
    )


app.include_router(orders_router)
app.include_router(payments_router)
app.include_router(shops_router)
if settings.DEBUG or settings.TESTING:
    app.include_router(dev_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "store_backend": settings.STORE_BACKEND,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
    )
