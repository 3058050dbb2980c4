import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from courier_bridge.core.errors import CallBridgeError

log = structlog.get_logger("courier_bridge.error_handler")


async def call_bridge_error_handler(request: Request, exc: CallBridgeError):
    level = log.error if exc.status_code >= 500 else log.warning
    level("request failed", path=request.url.path, status=exc.status_code, error=exc.message, kind=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    missing = [".".join(str(p) for p in e["loc"][1:]) or str(e["loc"][0]) for e in exc.errors() if e.get("type") == "missing"]
    message = f"Missing required parameter: {', '.join(missing)}" if missing else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message, "details": jsonable_errors(exc)})


async def http_error_handler(request: Request, exc: Exception):
    log.exception("unhandled error", path=str(request.url.path))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
