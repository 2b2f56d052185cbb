# backend/plotbook/middleware/request_context.py
from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


@dataclass
class RequestContext:
    request_id: str
    user_id: Optional[int] = None
    company_id: Optional[int] = None


# Holds one mutable object per request. Sync dependencies run in worker
# threads with a copied context, so the caller is bound by mutating the
# shared object rather than by setting the var again.
_ctx: ContextVar[Optional[RequestContext]] = ContextVar("plotbook_request_context", default=None)


def current_context() -> Optional[RequestContext]:
    return _ctx.get()


def bind_principal(*, user_id: int, company_id: Optional[int]) -> None:
    c = _ctx.get()
    if c is not None:
        c.user_id = user_id
        c.company_id = company_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Opens a RequestContext per request and echoes the id as X-Request-ID.

    An incoming X-Request-ID is reused; otherwise a UUID4 is generated.
    """

    header = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(self.header) or str(uuid.uuid4())
        ctx = RequestContext(request_id=rid)
        request.state.context = ctx
        token = _ctx.set(ctx)
        try:
            resp = await call_next(request)
            resp.headers[self.header] = rid
            return resp
        finally:
            _ctx.reset(token)
