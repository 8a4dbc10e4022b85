from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


class QueryTokenMiddleware(BaseHTTPMiddleware):
    """Copy a ``?token=`` query parameter into the Authorization header.

    Clients that cannot set headers (EventSource, plain links) pass the session
    token in the query string; after this middleware both forms resolve the
    same way. A query token replaces any Authorization header already sent.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        token = request.query_params.get("token")
        if token is not None:
            headers = [
                (name, value)
                for name, value in request.scope["headers"]
                if name.lower() != b"authorization"
            ]
            try:
                value = f"Bearer {token}".encode("latin-1")
            except UnicodeEncodeError:
                # Not a token we could have issued; the gate sees no header.
                value = None
            if value is not None:
                headers.append((b"authorization", value))
            request.scope["headers"] = headers
        return await call_next(request)
