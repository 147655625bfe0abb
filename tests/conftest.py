import pytest
from fastapi import APIRouter
from fastapi import Depends
from fastapi import FastAPI
from fastapi import Request
from payload_models import Item
from payload_models import Order

from multiresponse.config import NegotiationConfig
from multiresponse.fastapi_utils import NegotiatingRoute
from multiresponse.fastapi_utils import install_negotiation
from multiresponse.fastapi_utils import payload_body
from multiresponse.fastapi_utils import respond
from multiresponse.payload import Payload
from multiresponse.serializers.registry import CodecRegistry


@pytest.fixture
def json_proto_registry():
    # the default format set: json + protobuf
    return CodecRegistry(NegotiationConfig())


@pytest.fixture
def full_registry():
    return CodecRegistry(NegotiationConfig(enable_xml=True))


@pytest.fixture
def json_only_registry():
    return CodecRegistry(NegotiationConfig(enable_protobuf=False))


@pytest.fixture
def item():
    return Item(foo="hello", bar=42)


@pytest.fixture
def order():
    return Order(
        id=7,
        lines=[{"sku": "A-1", "qty": 2}],
        tags=["rush", "gift"],
        paid=True,
    )


def _build_app(registry: CodecRegistry) -> FastAPI:
    app = FastAPI()
    install_negotiation(app, registry=registry)

    router = APIRouter(route_class=NegotiatingRoute)

    @router.post("/")
    async def responder(
        payload: Payload[Item] = Depends(payload_body(Item)),
    ) -> Payload[Item]:
        return payload

    @router.post("/created", status_code=201)
    async def create(
        payload: Payload[Item] = Depends(payload_body(Item)),
    ) -> Payload[Item]:
        return Payload(payload.into_inner().model_copy(update={"bar": 1}))

    @router.post("/sync")
    def sync_responder(
        payload: Payload[Item] = Depends(payload_body(Item)),
    ) -> Payload[Item]:
        return payload

    @router.get("/order")
    async def get_order() -> Payload[Order]:
        return Payload(
            Order(id=1, lines=[{"sku": "B-2", "qty": 1}], tags=["x"])
        )

    @router.get("/plain")
    async def plain() -> dict:
        return {"plain": True}

    app.include_router(router)

    # outside NegotiatingRoute: relies on install_negotiation's handler
    @app.post("/manual")
    async def manual(
        request: Request, payload: Payload[Item] = Depends(payload_body(Item))
    ):
        return respond(request, payload)

    return app


@pytest.fixture
def app(json_proto_registry):
    return _build_app(json_proto_registry)


@pytest.fixture
def xml_app(full_registry):
    return _build_app(full_registry)
