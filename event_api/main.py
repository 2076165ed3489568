import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from event_api.config import get_settings
from event_api.controllers.events import router as events_router
from event_api.controllers.health import router as health_router
from event_api.controllers.ws_events import router as ws_events_router
from event_api.errors import register_exception_handlers
from event_api.lifespan import lifespan
from event_api.middleware import HTTPLogMiddleware

settings = get_settings()

logging.basicConfig(
    level=settings.logging.level,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)

app = FastAPI(title="Event API", version="1.0.0", lifespan=lifespan)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("event_api.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)

app.include_router(health_router)
app.include_router(events_router)
app.include_router(ws_events_router)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
