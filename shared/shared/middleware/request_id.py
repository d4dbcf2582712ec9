import uuid
from collections.abc import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import Response

# API Gateway forwards its own request id; reuse it so logs line up across hops.
_INBOUND_HEADERS = ("X-Request-ID", "X-Amzn-RequestId", "Apigw-Requestid")


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = next(
        (request.headers[h] for h in _INBOUND_HEADERS if request.headers.get(h)),
        None,
    ) or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response
