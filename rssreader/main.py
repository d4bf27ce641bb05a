from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates

from rssreader.artifacts import render_feed_content, render_feed_list_item
from rssreader.errors import (
    FetchError,
    InvalidInputError,
    NotFoundError,
    RSSReaderError,
    problem,
)
from rssreader.logging_utils import log_event
from rssreader.middleware import request_id_middleware
from rssreader.schemas import AddFeedRequest, FeedSnapshot, Subscription
from rssreader.service import FeedService

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# Domain error -> HTTP status. FetchError is an upstream failure.
ERROR_STATUS = {
    InvalidInputError: 400,
    NotFoundError: 404,
    FetchError: 502,
}


def _problem_response(request: Request, *, status: int, code: str, message: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", "")
    payload = problem(status=status, code=code, message=message, request_id=rid)
    resp = JSONResponse(status_code=status, content=payload.model_dump())
    resp.headers["X-Request-ID"] = rid
    return resp


def _require_url(url: str) -> str:
    url = url.strip()
    if not url:
        raise HTTPException(status_code=400, detail="URL parameter is required")
    return url


def get_service(request: Request) -> FeedService:
    return request.app.state.service


def create_app(service: FeedService) -> FastAPI:
    """
    Build the HTTP layer around an explicitly constructed FeedService.

    Startup loads persisted feeds (and seeds defaults); shutdown flushes pending changes.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service.open()
        try:
            yield
        finally:
            service.close()

    app = FastAPI(title="RSS Reader", lifespan=lifespan)
    app.state.service = service

    # Register middleware
    app.middleware("http")(request_id_middleware)

    # --- UI ---

    @app.get("/", response_class=HTMLResponse)
    def home(request: Request):
        feeds = get_service(request).list_subscriptions()
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "title": "RSS Reader",
                "feeds": feeds,
                "render_feed_list_item": render_feed_list_item,
            },
        )

    @app.get("/health")
    def health(request: Request):
        log_event("health_check", request_id=request.state.request_id)
        return {"status": "ok"}

    # --- HTML fragments (htmx) ---

    @app.post("/feeds", response_class=HTMLResponse)
    def add_feed_fragment(request: Request, url: str = Form("")):
        url = _require_url(url)
        service = get_service(request)
        existed = service.is_subscribed(url)
        sub = service.add_subscription(url)
        if existed:
            # Metadata refreshed, but the sidebar already has this <li>
            return HTMLResponse("", headers={"HX-Reswap": "none"})
        return HTMLResponse(render_feed_list_item(sub))

    @app.get("/feed", response_class=HTMLResponse)
    def feed_fragment(request: Request, url: str = ""):
        url = _require_url(url)
        snapshot = get_service(request).get_subscription_content(url)
        return HTMLResponse(render_feed_content(snapshot))

    @app.delete("/feed", response_class=HTMLResponse)
    def remove_feed_fragment(request: Request, url: str = ""):
        url = _require_url(url)
        get_service(request).remove_subscription(url)
        # Empty body: htmx swaps the <li> out
        return HTMLResponse("")

    @app.get("/export")
    def export_feed(request: Request, url: str = ""):
        url = _require_url(url)
        body = get_service(request).export_as_feed(url)
        return Response(content=body, media_type="application/rss+xml")

    # --- JSON API ---

    @app.get("/api/feeds", response_model=list[Subscription])
    def api_list_feeds(request: Request):
        return get_service(request).list_subscriptions()

    @app.post("/api/feeds", response_model=Subscription, status_code=201)
    def api_add_feed(request: Request, body: AddFeedRequest):
        url = _require_url(body.url)
        return get_service(request).add_subscription(url)

    @app.get("/api/feed", response_model=FeedSnapshot)
    def api_get_feed(request: Request, url: str = ""):
        url = _require_url(url)
        return get_service(request).get_subscription_content(url)

    @app.delete("/api/feed")
    def api_remove_feed(request: Request, url: str = ""):
        url = _require_url(url)
        get_service(request).remove_subscription(url)
        return {"status": "removed", "url": url}

    # --- Error handlers ---

    @app.exception_handler(RSSReaderError)
    async def reader_error_handler(request: Request, exc: RSSReaderError):
        status = next((s for cls, s in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
        log_event(
            "reader_error",
            request_id=getattr(request.state, "request_id", None),
            status=status,
            code=exc.code,
            message=str(exc),
        )
        return _problem_response(request, status=status, code=exc.code.lower(), message=str(exc))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        rid = getattr(request.state, "request_id", None)
        log_event("http_error", request_id=rid, status=exc.status_code, message=str(exc.detail))
        return _problem_response(request, status=exc.status_code, code="http_error", message=str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Return ProblemDetails for Pydantic validation errors."""
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = ".".join(str(x) for x in first.get("loc", []))  # e.g., "body.url"
            msg = first.get("msg", "Validation error")
            message = f"{loc}: {msg}"
        else:
            message = "Validation error"

        log_event("validation_error", request_id=getattr(request.state, "request_id", None), message=message)
        return _problem_response(request, status=422, code="validation_error", message=message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        # Don't leak details to the client, but do log them
        log_event(
            "internal_error",
            request_id=getattr(request.state, "request_id", None),
            error_type=type(exc).__name__,
        )
        return _problem_response(request, status=500, code="internal_error", message="Internal server error")

    return app
