from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from ..config import rate_limits_disabled
from ..dependencies import graph_store, session_store
from ..exceptions import AuthenticationFailure
from ..graph import GraphStore
from ..schemas import LoginRequest, LoginResponse, OkResponse, UserOut
from ..services.authorization import Identity
from ..services.sessions import SessionStore, login as open_session


def _get_client_ip(request: Request) -> str:
  forwarded = request.headers.get("X-Forwarded-For")
  if forwarded:
    parts = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
    if parts:
      return parts[-1]
  real_ip = request.headers.get("X-Real-IP")
  if real_ip:
    return real_ip
  return request.client.host if request.client else ""


limiter = Limiter(key_func=_get_client_ip)
router = APIRouter(prefix="/auth", tags=["auth"])


def login_rate_limit() -> str:
  if rate_limits_disabled():
    return "1000/second"
  return "5/minute"


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
  detail = exc.detail if isinstance(exc.detail, str) else ""
  if detail:
    message = f"rate limit exceeded: {detail}"
  else:
    message = "rate limit exceeded: please wait before submitting another request."
  return JSONResponse(status_code=429, content={"error": message})


def extract_bearer_token(authorization: str | None) -> str:
  if not authorization or not authorization.lower().startswith("bearer "):
    raise AuthenticationFailure("missing token", code="auth_missing_token")
  token = authorization.split(" ", 1)[1].strip()
  if not token:
    raise AuthenticationFailure("missing token", code="auth_missing_token")
  return token


async def get_current_identity(
    authorization: str | None = Header(None),
    sessions: SessionStore = Depends(session_store),
) -> Identity:
  """Resolve the bearer token into the identity captured at login."""

  token = extract_bearer_token(authorization)
  user = await sessions.resolve(token)
  if user is None:
    raise AuthenticationFailure(
        "Invalid or expired token.", code="auth_invalid_token"
    )
  return Identity.from_session(user, token=token)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    body: LoginRequest,
    graph: GraphStore = Depends(graph_store),
    sessions: SessionStore = Depends(session_store),
):
  return await open_session(graph, sessions, body.username, body.password)


@router.get("/me", response_model=UserOut)
async def read_me(current: Identity = Depends(get_current_identity)):
  return UserOut(
      username=current.username,
      display_name=current.display_name,
      role=current.role.value,
  )


@router.post("/logout", response_model=OkResponse)
async def logout(
    current: Identity = Depends(get_current_identity),
    sessions: SessionStore = Depends(session_store),
):
  if current.token:
    await sessions.delete(current.token)
  return OkResponse()
