import logging
from functools import lru_cache, partial
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .auth import AuthService
from .challenges import InMemoryChallengeStore, generate_challenge_code
from .errors import AuthError, InvalidInput, RateLimited
from .logging_config import audit_log, configure_logging, set_request_id
from .models import InitAuthRequest, VerifyAuthRequest
from .rate_limit import RateLimiter
from .security import extract_client_id, parse_bearer_token, sanitize_for_logging
from .sessions import InMemorySessionIssuer
from .util import now_millis
from .whitelist import FileWhitelist

logger = logging.getLogger(__name__)

app = FastAPI(title="Wallet Auth")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

init_limiter = RateLimiter(config.INIT_AUTH_RPM)
verify_limiter = RateLimiter(config.VERIFY_AUTH_RPM)

INTERNAL_ERROR = "Internal server error"


@lru_cache()
def get_auth_service() -> AuthService:
    whitelist = FileWhitelist(
        config.WHITELIST_PATH,
        extra=config.split_csv(config.WALLET_WHITELIST),
        ttl_seconds=config.CONFIG_CACHE_TTL,
    )
    logger.info("Whitelist contains %d addresses", len(whitelist))
    return AuthService(
        whitelist=whitelist,
        store=InMemoryChallengeStore(clock=now_millis),
        sessions=InMemorySessionIssuer(ttl_ms=config.SESSION_TTL_SECONDS * 1000, clock=now_millis),
        challenge_ttl_ms=config.CHALLENGE_TTL_SECONDS * 1000,
        clock=now_millis,
        code_generator=partial(generate_challenge_code, config.CHALLENGE_CODE_LENGTH),
    )


def get_init_limiter() -> RateLimiter:
    return init_limiter


def get_verify_limiter() -> RateLimiter:
    return verify_limiter


def _enforce_rate_limit(limiter: RateLimiter, request: Request, endpoint: str) -> None:
    client_id = extract_client_id(
        request.headers,
        request.client.host if request.client else None,
        trust_proxy=config.TRUST_PROXY_HEADERS,
    )
    result = limiter.check(client_id)
    if not result.allowed:
        audit_log.rate_limit_exceeded(client_id, endpoint)
        raise RateLimited(retry_after=result.retry_after)


def _error_response(err: AuthError, verify: bool = False) -> JSONResponse:
    content = err.to_dict()
    if verify:
        content = {"success": False, **content}
    headers = None
    if isinstance(err, RateLimited) and err.retry_after is not None:
        headers = {"Retry-After": str(int(err.retry_after) + 1)}
    return JSONResponse(status_code=err.status_code, content=content, headers=headers)


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = set_request_id(request.headers.get("x-request-id") or None)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def invalid_input_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = "request body"
    if errors:
        loc = [part for part in errors[0].get("loc", ()) if part != "body"]
        if loc and isinstance(loc[-1], str):
            field = loc[-1]
    logger.info("Invalid request to %s: %s", request.url.path, [e.get("loc") for e in errors])
    return _error_response(InvalidInput(f"{field} is required"), verify=request.url.path == "/verify-auth")


@app.post("/init-auth")
def init_auth(
    req: InitAuthRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_init_limiter),
):
    try:
        _enforce_rate_limit(limiter, request, "/init-auth")
        challenge = service.initiate(req.wallet_address)
    except AuthError as e:
        return _error_response(e)
    except Exception:
        logger.exception("Error in /init-auth: %s", sanitize_for_logging(req.model_dump(by_alias=True)))
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})

    return {
        "code": challenge.code,
        "message": challenge.message,
        "instructions": challenge.instructions,
        "expiresAt": challenge.expires_at,
    }


@app.post("/verify-auth")
def verify_auth(
    req: VerifyAuthRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_verify_limiter),
):
    try:
        _enforce_rate_limit(limiter, request, "/verify-auth")
        result = service.verify(req.wallet_address, req.signature)
    except AuthError as e:
        return _error_response(e, verify=True)
    except Exception:
        logger.exception("Error in /verify-auth: %s", sanitize_for_logging(req.model_dump(by_alias=True)))
        return JSONResponse(status_code=500, content={"success": False, "error": INTERNAL_ERROR})

    return {
        "success": True,
        "token": result.token,
        "message": result.message,
        "expiresAt": result.expires_at,
    }


@app.get("/session")
def get_session(
    authorization: Optional[str] = Header(None),
    service: AuthService = Depends(get_auth_service),
):
    token = parse_bearer_token(authorization)
    session = service.sessions.validate(token) if token else None
    if session is None:
        return JSONResponse(status_code=401, content={"valid": False, "error": "Invalid or expired session"})
    return {
        "valid": True,
        "walletAddress": session.address,
        "issuedAt": session.issued_at,
        "expiresAt": session.expires_at,
    }


@app.delete("/session")
def revoke_session(
    authorization: Optional[str] = Header(None),
    service: AuthService = Depends(get_auth_service),
):
    token = parse_bearer_token(authorization)
    session = service.sessions.validate(token) if token else None
    revoked = service.sessions.revoke(token) if session else False
    if revoked:
        audit_log.session_revoked(session.address, token)
    return {"revoked": revoked}


@app.get("/health")
def health():
    return {"status": "ok", "timestamp": now_millis()}


def run():
    level = "DEBUG" if config.is_debug() else config.LOG_LEVEL
    configure_logging(level=level, json_format=config.LOG_JSON, log_file=config.LOG_FILE)
    for name, exists in config.validate_config().items():
        if not exists:
            logger.warning("Configured %s not found", name)
    if config.is_production() and "*" in config.cors_origins():
        logger.warning("CORS allows any origin in production")
    get_auth_service()
    logger.info("Server running on http://%s:%d", config.HOST, config.PORT)
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_config=None)


if __name__ == "__main__":
    run()
