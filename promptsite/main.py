import logging
import os
import re
import resource
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Tuple

from fastapi import Body, Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

import promptsite
from promptsite import llm_client, projects
from promptsite import ratelimit as _rl_mod
from promptsite import store as store_mod
from promptsite.auth import extract_client_key, keys_required, require_api_key
from promptsite.editor import EditFailed, edit_site
from promptsite.generator import create_site
from promptsite.redis_ratelimit import RedisRateLimiter
from promptsite.responses import (
    NO_STORE,
    ApiError,
    NotFound,
    RateLimited,
    UpstreamFailed,
    ValidationFailed,
    api_error_response,
    error_response,
    success_response,
)
from promptsite.validators import BULK_OPERATIONS, collect_bulk_errors, require_text, validate_project_id

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

log = logging.getLogger(__name__)

APP_ENV = os.getenv("APP_ENV", "production").strip().lower()
APP_VERSION = os.getenv("APP_VERSION", promptsite.__version__)
_STARTED_AT = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not llm_client.has_token():
        log.warning("GEMINI_API_KEY is not set: site creation will always use the fallback template "
                    "and AI edits will fail")
    else:
        log.info("Gemini configured model=%s edit_model=%s",
                 llm_client.GEMINI_GENERATION_MODEL, llm_client.GEMINI_EDIT_MODEL)
    log.info("rate limiter backend=%s api_keys=%s",
             "redis" if _rl_instance is not None else "memory",
             "required" if keys_required() else "open")
    yield

app = FastAPI(title="promptsite", version=APP_VERSION, lifespan=lifespan)

allow_origins = [o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = str(uuid.uuid4())
    start = time.time()
    request.state.request_id = rid
    response = None
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        response.headers.setdefault("Cache-Control", NO_STORE)
        return response
    finally:
        dur_ms = int((time.time() - start) * 1000)
        log.info(
            "rid=%s method=%s path=%s status=%s dur_ms=%d",
            rid, request.method, request.url.path, getattr(response, "status_code", "?"), dur_ms,
        )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    log.info("%s %s -> %d %s: %s", request.method, request.url.path, exc.status_code, exc.code, exc.message)
    return api_error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        details.append({"path": ".".join(loc) or "body", "message": err.get("msg", "invalid value")})
    log.info("validation error on %s: %s", request.url.path, details)
    return error_response(request, "Invalid request format", "VALIDATION_ERROR", 400, details=details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
    return error_response(request, str(exc.detail), code, exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    details = None
    if APP_ENV == "development":
        details = {
            "type": type(exc).__name__,
            "message": str(exc),
            "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__),
        }
    return error_response(request, "Internal server error", "INTERNAL_ERROR", 500, details=details)


class CreateRequest(BaseModel):
    prompt: Optional[str] = None


class AiEditRequest(BaseModel):
    prompt: Optional[str] = None
    html: Optional[str] = None
    id: Optional[str] = None


class ProjectLookup(BaseModel):
    id: Any = None


class ProjectSave(BaseModel):
    id: Any = None
    completeHtml: Optional[str] = None


# Choose rate limiter based on environment
_REDIS_URL = os.getenv("REDIS_URL", "").strip()
_rl_instance: Optional[RedisRateLimiter] = None
if _REDIS_URL and not os.getenv("PYTEST_CURRENT_TEST"):
    try:
        _rl_instance = RedisRateLimiter(_REDIS_URL)
    except Exception:
        log.exception("could not configure Redis rate limiter; using in-process limiter")
        _rl_instance = None


def _safe_rate_check(bucket: str, key: str) -> Tuple[bool, int, int]:
    """
    Return (allowed, remaining, reset_ts).
    Uses the Redis limiter when configured, falling back to the in-process one.
    """
    if _rl_instance is not None:
        try:
            return _rl_instance.check_and_increment(bucket, key)
        except Exception as e:
            log.warning("redis rate limiter unavailable (%r); using in-process limiter", e)
    return _rl_mod.check_and_increment(bucket, key)


def _rate_limit_headers(remaining: int, reset_ts: int, *, limited: bool = False) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset_ts),
    }
    if limited:
        wait_seconds = max(0, reset_ts - int(time.time()))
        headers["Retry-After"] = str(wait_seconds)
    return headers


def _enforce_rate_limit(bucket: str, request: Request, api_key: Optional[str]) -> Dict[str, str]:
    allowed, remaining, reset_ts = _safe_rate_check(bucket, extract_client_key(api_key, request))
    if not allowed:
        wait_seconds = max(0, reset_ts - int(time.time()))
        raise RateLimited(
            f"Rate limit exceeded. Try again in {wait_seconds} seconds.",
            remaining=remaining,
            reset_ts=reset_ts,
            retry_after=wait_seconds,
            headers=_rate_limit_headers(remaining, reset_ts, limited=True),
        )
    return _rate_limit_headers(remaining, reset_ts)


def gen_rate_limit(request: Request, api_key: Optional[str] = Depends(require_api_key)) -> Dict[str, str]:
    return _enforce_rate_limit("gen", request, api_key)


def projects_rate_limit(request: Request, api_key: Optional[str] = Depends(require_api_key)) -> Dict[str, str]:
    return _enforce_rate_limit("projects", request, api_key)


def _project_id(value: Any) -> str:
    msg = validate_project_id(value)
    if msg:
        raise ValidationFailed(msg, code="INVALID_ID")
    return value


@app.post("/api/create")
def create_endpoint(
    req: CreateRequest,
    request: Request,
    rl_headers: Dict[str, str] = Depends(gen_rate_limit),
):
    msg = require_text(req.prompt, "prompt")
    if msg:
        raise ValidationFailed("Prompt is required", details=[{"path": "prompt", "message": msg}])

    site = create_site(req.prompt)
    record = projects.new_project(site, req.prompt)
    stored = store_mod.get_store().save(record["id"], record)
    log.info("created project %s with=%s", stored["id"], stored["generatedWith"])
    return success_response(request, stored, headers=rl_headers)


@app.post("/api/aiEdit")
def ai_edit_endpoint(
    req: AiEditRequest,
    request: Request,
    rl_headers: Dict[str, str] = Depends(gen_rate_limit),
):
    details = []
    for name, value in (("prompt", req.prompt), ("html", req.html)):
        msg = require_text(value, name)
        if msg:
            details.append({"path": name, "message": msg})
    if details:
        raise ValidationFailed("Both 'prompt' and 'html' are required", details=details)

    try:
        html = edit_site(req.html, req.prompt, project_id=req.id, store=store_mod.get_store())
    except EditFailed as e:
        raise UpstreamFailed(str(e)) from e
    headers = {"Cache-Control": NO_STORE}
    headers.update(rl_headers)
    return HTMLResponse(html, headers=headers)


@app.post("/api/projects")
def get_project_endpoint(
    req: ProjectLookup,
    request: Request,
    rl_headers: Dict[str, str] = Depends(projects_rate_limit),
):
    project_id = _project_id(req.id)
    record = store_mod.get_store().get(project_id)
    if record is None:
        raise NotFound(f"Project with ID {project_id} not found", details={"requestedId": project_id})
    return success_response(request, {"project": record}, headers=rl_headers)


@app.put("/api/projects")
def save_project_endpoint(
    req: ProjectSave,
    request: Request,
    rl_headers: Dict[str, str] = Depends(projects_rate_limit),
):
    project_id = _project_id(req.id)
    if req.completeHtml is None:
        raise ValidationFailed(
            "HTML content is required",
            details=[{"path": "completeHtml", "message": "required property 'completeHtml' is missing"}],
        )
    record, operation, status_code = projects.upsert_project(store_mod.get_store(), project_id, req.completeHtml)
    return success_response(
        request, {"project": record, "operation": operation}, status_code=status_code, headers=rl_headers
    )


@app.delete("/api/projects")
def delete_project_endpoint(
    request: Request,
    project_id: Optional[str] = Query(default=None, alias="id"),
    rl_headers: Dict[str, str] = Depends(projects_rate_limit),
):
    project_id = _project_id(project_id)
    if not store_mod.get_store().delete(project_id):
        raise NotFound("Project not found", details={"requestedId": project_id})
    log.info("project %s deleted", project_id)
    return success_response(
        request, {"message": "Project deleted successfully", "projectId": project_id}, headers=rl_headers
    )


@app.patch("/api/projects")
def bulk_projects_endpoint(
    request: Request,
    body: Dict[str, Any] = Body(...),
    rl_headers: Dict[str, str] = Depends(projects_rate_limit),
):
    errors = collect_bulk_errors(body)
    if errors:
        raise ValidationFailed("Invalid bulk request", details=errors)
    operation = body["operation"]
    if operation not in BULK_OPERATIONS:
        raise ValidationFailed(f"Unsupported operation: {operation}", code="UNSUPPORTED_OPERATION")
    results = projects.bulk_operation(store_mod.get_store(), operation, body["projectIds"], body.get("data"))
    return success_response(request, {"operation": operation, "results": results}, headers=rl_headers)


@app.options("/api/projects")
def projects_preflight() -> Response:
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, Authorization, x-api-key",
            "Access-Control-Max-Age": "86400",
            "Cache-Control": NO_STORE,
        },
    )


@app.get("/api/projects/list")
def list_projects_endpoint(
    request: Request,
    search: str = Query(default=""),
    sortBy: str = Query(default="createdAt"),
    sortOrder: str = Query(default="desc"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=0),
    rl_headers: Dict[str, str] = Depends(projects_rate_limit),
):
    payload = projects.query_projects(
        store_mod.get_store().list(),
        search=search,
        sort_by=sortBy,
        sort_order=sortOrder,
        offset=offset,
        limit=limit,
    )
    return success_response(request, payload, headers=rl_headers)


@app.get("/api/projects/stats")
def project_stats_endpoint(
    request: Request,
    rl_headers: Dict[str, str] = Depends(projects_rate_limit),
):
    stats = projects.project_stats(store_mod.get_store().list())
    return success_response(request, {"stats": stats}, headers=rl_headers)


@app.get("/api/projects/activity")
def project_activity_endpoint(
    request: Request,
    limit: int = Query(default=50),
    projectId: Optional[str] = Query(default=None),
    eventType: Optional[str] = Query(default=None),
    rl_headers: Dict[str, str] = Depends(projects_rate_limit),
):
    payload = projects.activity_view(store_mod.get_store(), limit=limit, project_id=projectId, event_type=eventType)
    return success_response(request, payload, headers=rl_headers)


@app.get("/api/projects/export")
def export_project_endpoint(
    project_id: Optional[str] = Query(default=None, alias="id"),
    rl_headers: Dict[str, str] = Depends(projects_rate_limit),
) -> Response:
    project_id = _project_id(project_id)
    record = store_mod.get_store().get(project_id)
    if record is None:
        raise NotFound(f"Project with ID {project_id} not found", details={"requestedId": project_id})
    safe_id = re.sub(r"[^A-Za-z0-9_-]", "_", project_id)[:64]
    headers = {
        "Content-Disposition": f'attachment; filename="project-{safe_id}.zip"',
        "Cache-Control": NO_STORE,
    }
    headers.update(rl_headers)
    return Response(content=projects.export_zip(record), media_type="application/zip", headers=headers)


def _memory_mb() -> float:
    # ru_maxrss is reported in kilobytes on Linux
    return round(resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024, 1)


@app.get("/api/health")
def health(request: Request):
    start = time.perf_counter()
    try:
        count = len(store_mod.get_store().list())
        payload = {
            "status": "ok",
            "environment": APP_ENV,
            "version": APP_VERSION,
            "stats": {
                "projects": count,
                "responseTimeMs": round((time.perf_counter() - start) * 1000, 2),
                "uptimeSeconds": int(time.time() - _STARTED_AT),
                "memory": {"maxRssMB": _memory_mb()},
            },
            "llm": llm_client.status(),
        }
    except Exception as e:
        log.exception("health check failed")
        return error_response(
            request,
            "Health check failed",
            "HEALTH_CHECK_FAILED",
            503,
            details={"message": str(e)} if APP_ENV == "development" else None,
            extra={"status": "error"},
        )
    return success_response(request, payload)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
