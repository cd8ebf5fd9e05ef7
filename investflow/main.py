from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging
import time
from typing import Any, Optional

from opentelemetry.trace import get_current_span

from investflow.core.config import settings
from investflow.api.routes.health import router as health_router
from investflow.api.routes.investments import router as investments_router
from investflow.api.routes.plans import router as plans_router
from investflow.api.routes.projects import router as projects_router
from investflow.api.routes.users import router as users_router
from investflow.utils.envelopes import api_success, api_error
from investflow.utils.exceptions import AppException
from investflow.core.db import init_engine_and_session


app = FastAPI(title=settings.APP_NAME)

# Telemetry / Azure Monitor (optional)
_logger = logging.getLogger("investflow.api")
try:
	if settings.ENABLE_APP_INSIGHTS and settings.AZURE_MONITOR_CONN_STR:
		from azure.monitor.opentelemetry import configure_azure_monitor
		from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
		from opentelemetry.instrumentation.logging import LoggingInstrumentor

		configure_azure_monitor(
			connection_string=settings.AZURE_MONITOR_CONN_STR,
			sampling_ratio=settings.SAMPLING_RATIO,
		)
		# Include trace/span ids in stdlib logging records
		LoggingInstrumentor().instrument(set_logging_format=True)
		FastAPIInstrumentor.instrument_app(app)
		_logger.info("Azure Monitor telemetry is enabled")
except Exception as telemetry_exc:
	# Telemetry must not block startup
	_logger.warning("Failed to initialize Azure Monitor telemetry: %s", telemetry_exc)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# Normalize API prefix (must not end with '/')
_api_prefix = settings.API_PREFIX.rstrip("/")

app.include_router(health_router, prefix=_api_prefix)
app.include_router(users_router, prefix=_api_prefix)
app.include_router(plans_router, prefix=_api_prefix)
app.include_router(projects_router, prefix=_api_prefix)
app.include_router(investments_router, prefix=_api_prefix)


def _trace_id() -> Optional[str]:
	_current_span = get_current_span()
	trace_id_int = _current_span.get_span_context().trace_id if _current_span else 0
	return f"{trace_id_int:032x}" if trace_id_int else None


# Structured request logging (includes trace correlation where available)
@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
	start_time = time.perf_counter()
	client_ip: Optional[str] = request.headers.get("x-forwarded-for") or (request.client.host if request.client else None)
	user_agent: Optional[str] = request.headers.get("user-agent")
	status_code: Optional[int] = None
	try:
		response = await call_next(request)
		status_code = response.status_code
		return response
	except Exception:
		_logger.exception(
			"Unhandled exception during request",
			extra={
				"http.method": request.method,
				"http.route": request.url.path,
				"net.peer.ip": client_ip,
				"http.user_agent": user_agent,
				"trace_id": _trace_id(),
			},
		)
		raise
	finally:
		elapsed_ms = (time.perf_counter() - start_time) * 1000.0
		_logger.info(
			"HTTP request",
			extra={
				"http.method": request.method,
				"http.route": request.url.path,
				"http.status_code": status_code,
				"http.duration_ms": round(elapsed_ms, 2),
				"net.peer.ip": client_ip,
				"http.user_agent": user_agent,
				"trace_id": _trace_id(),
			},
		)


@app.on_event("startup")
def on_startup() -> None:
	init_engine_and_session()


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
	if exc.status_code >= 500:
		_logger.error("Application error %s: %s", exc.code, exc.message, extra={"trace_id": _trace_id()})
	return JSONResponse(
		status_code=exc.status_code,
		content=api_error(code=exc.code, message=exc.message, details=exc.details),
	)


def _validation_details(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
	details = []
	for error in errors:
		# Drop the location prefix ("body", "query", "path")
		loc = [str(part) for part in error.get("loc", ())]
		if loc and loc[0] in ("body", "query", "path", "header"):
			loc = loc[1:]
		details.append({"field": ".".join(loc) or "request", "message": error.get("msg", "Invalid value")})
	return details


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
	return JSONResponse(
		status_code=400,
		content=api_error(
			code="VALIDATION_ERROR",
			message="Validation failed",
			details=_validation_details(exc.errors()),
		),
	)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
	_logger.exception(
		"Unhandled exception",
		extra={
			"http.method": request.method,
			"http.route": request.url.path,
			"trace_id": _trace_id(),
		},
	)
	return JSONResponse(status_code=500, content=api_error(code="INTERNAL_SERVER_ERROR", message="An unexpected error occurred"))


@app.get("/")
async def root():
	return api_success({"service": settings.APP_NAME, "status": "ok"})
