import inspect
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import Optional
from typing import Type
from typing import TypeVar
from typing import get_origin

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.routing import APIRoute

from multiresponse.config import NegotiationConfig
from multiresponse.errors import NegotiationError
from multiresponse.log_config import configure_logging
from multiresponse.log_config import logger
from multiresponse.payload import Payload
from multiresponse.payload import decode_request
from multiresponse.payload import encode_response
from multiresponse.serializers.registry import CodecRegistry
from multiresponse.serializers.registry import registry as default_registry

T = TypeVar("T")

# Extra keyword injected into negotiated endpoints so they see the request
_REQUEST_PARAM = "_negotiation_request"


def _registry_for(
    request: Request, registry: Optional[CodecRegistry]
) -> CodecRegistry:
    if registry is not None:
        return registry
    return getattr(request.app.state, "negotiation_registry", default_registry)


def negotiation_error_response(exc: NegotiationError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def negotiation_error_handler(
    request: Request, exc: NegotiationError
) -> Response:
    return negotiation_error_response(exc)


def payload_body(
    model_type: Type[T], registry: Optional[CodecRegistry] = None
) -> Callable[[Request], Awaitable[Payload[T]]]:
    """
    Dependency factory decoding the request body into `model_type`:

        async def create(item: Payload[Item] = Depends(payload_body(Item))):
    """

    async def _extract(request: Request) -> Payload[T]:
        body = await request.body()
        return decode_request(
            model_type,
            request.headers.get("content-type"),
            body,
            _registry_for(request, registry),
        )

    return _extract


def respond(
    request: Request,
    payload: Any,
    registry: Optional[CodecRegistry] = None,
    status_code: int = 200,
) -> Response:
    """
    Encode `payload` for this request's Accept header. Negotiation
    failures become error responses instead of propagating.
    """
    try:
        encoded = encode_response(
            payload,
            request.headers.get("accept"),
            request.headers.get("content-type"),
            _registry_for(request, registry),
        )
    except NegotiationError as exc:
        return negotiation_error_response(exc)
    return Response(
        content=encoded.body,
        status_code=status_code,
        media_type=encoded.media_type,
        headers={"Vary": "Accept"},
    )


def _is_payload_annotation(annotation: Any) -> bool:
    return annotation is Payload or get_origin(annotation) is Payload


def negotiated(
    endpoint: Callable[..., Any],
    registry: Optional[CodecRegistry] = None,
    status_code: Optional[int] = None,
) -> Callable[..., Any]:
    """
    Wrap an endpoint so a returned Payload is encoded per the Accept
    header. Any other return value passes through untouched.
    """
    if getattr(endpoint, "__negotiated__", False):
        # include_router re-creates routes from already wrapped endpoints
        return endpoint
    signature = inspect.signature(endpoint, eval_str=True)
    params = list(signature.parameters.values())
    position = len(params)
    if params and params[-1].kind is inspect.Parameter.VAR_KEYWORD:
        position -= 1
    params.insert(
        position,
        inspect.Parameter(
            _REQUEST_PARAM, inspect.Parameter.KEYWORD_ONLY, annotation=Request
        ),
    )
    return_annotation = signature.return_annotation
    if _is_payload_annotation(return_annotation):
        # keeps FastAPI from building a response model out of Payload
        return_annotation = inspect.Signature.empty

    def _finish(result: Any, request: Request) -> Any:
        if isinstance(result, Payload):
            return respond(request, result, registry, status_code or 200)
        return result

    wrapper: Callable[..., Any]
    if inspect.iscoroutinefunction(endpoint):

        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            request = kwargs.pop(_REQUEST_PARAM)
            return _finish(await endpoint(*args, **kwargs), request)

    else:

        def wrapper(*args: Any, **kwargs: Any) -> Any:
            request = kwargs.pop(_REQUEST_PARAM)
            return _finish(endpoint(*args, **kwargs), request)

    for attr in ("__module__", "__name__", "__qualname__", "__doc__"):
        if hasattr(endpoint, attr):
            setattr(wrapper, attr, getattr(endpoint, attr))
    wrapper.__signature__ = signature.replace(  # type: ignore[attr-defined]
        parameters=params, return_annotation=return_annotation
    )
    wrapper.__negotiated__ = True  # type: ignore[attr-defined]
    return wrapper


class NegotiatingRoute(APIRoute):
    """
    Route class negotiating every endpoint it wraps:

        router = APIRouter(route_class=NegotiatingRoute)

    Negotiation errors raised while extracting or encoding become
    `{kind, detail}` responses even without install_negotiation().
    """

    registry: Optional[CodecRegistry] = None

    def __init__(
        self, path: str, endpoint: Callable[..., Any], **kwargs: Any
    ) -> None:
        wrapped = negotiated(
            endpoint, self.registry, status_code=kwargs.get("status_code")
        )
        super().__init__(path, wrapped, **kwargs)

    def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
        handler = super().get_route_handler()

        async def negotiating_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except NegotiationError as exc:
                return negotiation_error_response(exc)

        return negotiating_handler


def install_negotiation(
    app: FastAPI,
    config: Optional[NegotiationConfig] = None,
    registry: Optional[CodecRegistry] = None,
) -> CodecRegistry:
    """
    Call at application startup. Builds the codec registry (an empty
    format set fails here, not on the first request), makes it the app's
    registry and converts NegotiationError into error responses.
    """
    if registry is None:
        registry = (
            CodecRegistry(config) if config is not None else default_registry
        )
    app.state.negotiation_registry = registry
    app.add_exception_handler(NegotiationError, negotiation_error_handler)
    configure_logging(registry.config.json_logging)
    logger.info(
        "Negotiation installed for %s", ", ".join(registry.supported_types())
    )
    return registry
