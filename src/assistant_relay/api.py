import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import AliasChoices, BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from assistant_relay.auth import AuthorizationPredicate, EmailAllowList
from assistant_relay.config.settings import get_settings
from assistant_relay.orchestrator import Orchestrator
from assistant_relay.policy import (
    NO_CACHE,
    PolicyDecision,
    conversation_decision,
    error_decision,
    search_decision,
)
from assistant_relay.search import DEFAULT_MAX_RESULTS, TavilySearchClient

logger = logging.getLogger(__name__)

app = FastAPI(title="Assistant Relay API", docs_url=None, redoc_url=None)
router = APIRouter(prefix="/api")


@lru_cache
def get_orchestrator() -> Orchestrator:
    return Orchestrator()


def get_search_client() -> TavilySearchClient:
    return TavilySearchClient.from_settings(get_settings())


def get_authorizer() -> AuthorizationPredicate:
    return EmailAllowList(get_settings().allowed_email_list)


async def require_authorized(
    x_user_email: str | None = Header(default=None),
    is_authorized: AuthorizationPredicate = Depends(get_authorizer),
) -> None:
    if not is_authorized(x_user_email):
        raise HTTPException(status_code=403, detail="Not authorized")


def _respond(decision: PolicyDecision) -> JSONResponse:
    return JSONResponse(
        decision.body, status_code=decision.status_code, headers=decision.headers
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        message = error.get("msg", "invalid")
        location = ".".join(
            str(part) for part in error.get("loc", ()) if part != "body"
        )
        problems.append(f"{location}: {message}" if location else message)
    return "Invalid request: " + "; ".join(problems)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _respond(PolicyDecision(422, NO_CACHE, {"error": _describe_validation_error(exc)}))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _respond(PolicyDecision(exc.status_code, NO_CACHE, {"error": str(exc.detail)}))


@app.get("/", include_in_schema=False)
async def root_redirect():
    return RedirectResponse(url="/api/docs")


@router.get("/docs", include_in_schema=False)
async def custom_swagger_ui_html():
    return get_swagger_ui_html(
        openapi_url=app.openapi_url,
        title=app.title + " - Swagger UI",
        swagger_js_url="https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui-bundle.js",
        swagger_css_url="https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui.css",
    )


class ChatRequest(BaseModel):
    input: str
    # "threadId" is what older clients send.
    session_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sessionId", "threadId", "session_id"),
    )


class SearchRequest(BaseModel):
    query: str = ""
    max_results: int = DEFAULT_MAX_RESULTS
    include_domains: list[str] | None = None


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.post("/chat", dependencies=[Depends(require_authorized)])
async def chat(
    request: ChatRequest, orchestrator: Orchestrator = Depends(get_orchestrator)
):
    try:
        result = await orchestrator.converse(request.input, request.session_id)
        decision = conversation_decision(result)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Chat API error")
        decision = error_decision(exc)
    return _respond(decision)


@router.post("/search", dependencies=[Depends(require_authorized)])
async def search(
    request: SearchRequest,
    client: TavilySearchClient = Depends(get_search_client),
):
    domains = request.include_domains
    if domains is None:
        domains = get_settings().search_domains
    try:
        result = await client.search(
            request.query,
            max_results=request.max_results,
            include_domains=domains,
        )
        decision = search_decision(result)
    except Exception as exc:  # noqa: BLE001
        logger.error("Search API error: %s", exc)
        decision = error_decision(exc, fallback="Search failed")
    return _respond(decision)


app.include_router(router)
