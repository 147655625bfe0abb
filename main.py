import itertools
import logging
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Type

import uvicorn
from fastapi import APIRouter
from fastapi import Depends
from fastapi import FastAPI
from fastapi import HTTPException
from google.protobuf.message import Message as PBMessage
from google.protobuf.struct_pb2 import Struct
from pydantic import BaseModel
from pydantic import Field

from multiresponse.config import NegotiationConfig
from multiresponse.fastapi_utils import NegotiatingRoute
from multiresponse.fastapi_utils import install_negotiation
from multiresponse.fastapi_utils import payload_body
from multiresponse.payload import Payload

# Configure logging level
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("multiresponse")
logger.setLevel(logging.INFO)

# ─────────────────────────────────────────────────────────────────────────────
# 0. Payload models
# ─────────────────────────────────────────────────────────────────────────────


class Note(BaseModel):
    # Struct stands in for a generated message so the demo needs no protoc
    protobuf_message: ClassVar[Type[PBMessage]] = Struct

    id: Optional[int] = None
    title: str
    body: str = ""
    tags: List[str] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# 1. Storage
# ─────────────────────────────────────────────────────────────────────────────

notes: Dict[int, Note] = {}
_ids = itertools.count(1)

# ─────────────────────────────────────────────────────────────────────────────
# 2. FastAPI app
# ─────────────────────────────────────────────────────────────────────────────

cfg = NegotiationConfig(enable_xml=True)

app: FastAPI = FastAPI()
install_negotiation(app, cfg)

router = APIRouter(route_class=NegotiatingRoute)


@router.post("/notes/", status_code=201)
async def create_note(
    note: Payload[Note] = Depends(payload_body(Note)),
) -> Payload[Note]:
    stored = note.into_inner().model_copy(update={"id": next(_ids)})
    notes[stored.id] = stored
    logger.info("Stored note %d", stored.id)
    return Payload(stored)


@router.get("/notes/{note_id}")
async def get_note(note_id: int) -> Payload[Note]:
    note = notes.get(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return Payload(note)


@router.post("/echo/")
def echo(note: Payload[Note] = Depends(payload_body(Note))) -> Payload[Note]:
    return note


app.include_router(router)


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
