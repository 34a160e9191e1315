import logging
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from app.config import settings
from app.logging_config import configure_logging
from app.api import routes
from app.services.scheduler import start_scheduler, stop_scheduler
from app.services.whatsapp import close_whatsapp_service

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug
)

# Include routers
app.include_router(routes.router)


@app.on_event("startup")
async def startup_event():
    """Start background scheduler on app startup"""
    start_scheduler()
    logger.info(f"{settings.app_name} started")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop background scheduler and close HTTP clients on app shutdown"""
    stop_scheduler()
    close_whatsapp_service()
    logger.info(f"{settings.app_name} stopped")


@app.get("/", response_class=PlainTextResponse)
def read_root():
    return "HBA WhatsApp bot ok"


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
