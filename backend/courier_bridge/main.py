# courier_bridge/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from courier_bridge.core.config import settings, setup_logging
from courier_bridge.core.errors import CallBridgeError
from courier_bridge.api.v1.routers.calls import router as calls_router
from courier_bridge.api.v1.routers.call_webhooks import router as call_webhooks_router
from courier_bridge.api.v1.routers.health import router as health_router
from courier_bridge.api.v1.routers.admin import router as admin_router

from courier_bridge.middleware.error_handler import (
    call_bridge_error_handler,
    http_error_handler,
    http_exception_handler,
    validation_error_handler,
)
from courier_bridge.middleware.request_context import RequestContextMiddleware


setup_logging()
app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",")] if settings.cors_origins else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)

app.include_router(calls_router)
app.include_router(call_webhooks_router)
app.include_router(health_router)
app.include_router(admin_router)

app.add_exception_handler(CallBridgeError, call_bridge_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, http_error_handler)
