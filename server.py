import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from attrconfig.backend import Backend
from attrconfig.errors import (
    AttrConfigError,
    ExternalWriteFailed,
    InvalidRequest,
    NotFound,
    SaveInProgress,
    Unauthorized,
    ValidationFailed,
)

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger("attrconfig_backend")

app = FastAPI()

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_backend: Optional[Backend] = None


def get_backend() -> Backend:
    global _backend
    if _backend is None:
        _backend = Backend()
    return _backend


def get_shop(x_shop_domain: str = Header(...)) -> str:
    return x_shop_domain.strip().lower()


ERROR_STATUS = {
    InvalidRequest: 400,
    Unauthorized: 403,
    NotFound: 404,
    SaveInProgress: 409,
    ValidationFailed: 422,
    ExternalWriteFailed: 502,
}


@app.exception_handler(AttrConfigError)
async def attrconfig_error_handler(request, exc: AttrConfigError):
    # anything unmapped comes from the Shopify transport
    status = 502
    for cls, code in ERROR_STATUS.items():
        if isinstance(exc, cls):
            status = code
            break
    to_dict = getattr(exc, "to_dict", None)
    body = to_dict() if callable(to_dict) else {"error": "upstream", "message": str(exc)}
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status, content=body)


class NamePayload(BaseModel):
    name: Optional[str] = None


class AttributePayload(BaseModel):
    name: Optional[str] = None
    group_ids: List[str] = []


class OpenSessionPayload(BaseModel):
    handle: str


class GroupSelectionPayload(BaseModel):
    group_ids: List[str]


class ValuePayload(BaseModel):
    value: str


class DocumentPayload(BaseModel):
    raw: str


# -----------------------
# Groups
# -----------------------

@app.get("/groups")
def list_groups(shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)):
    return {"groups": backend.list_groups(shop)}


@app.post("/groups", status_code=201)
def create_group(
    payload: NamePayload, shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)
):
    return backend.create_group(shop, payload.name)


@app.put("/groups/{group_id}")
def update_group(
    group_id: str,
    payload: NamePayload,
    shop: str = Depends(get_shop),
    backend: Backend = Depends(get_backend),
):
    return backend.update_group(shop, group_id, payload.name)


@app.delete("/groups/{group_id}", status_code=204)
def delete_group(group_id: str, shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)):
    backend.delete_group(shop, group_id)
    return Response(status_code=204)


# -----------------------
# Attributes
# -----------------------

@app.get("/attributes")
def list_attributes(shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)):
    return {"attributes": backend.list_attributes(shop), "groups": backend.list_groups(shop)}


@app.post("/attributes", status_code=201)
def create_attribute(
    payload: AttributePayload, shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)
):
    return backend.create_attribute(shop, payload.name, payload.group_ids)


@app.put("/attributes/{attribute_id}")
def update_attribute(
    attribute_id: str,
    payload: AttributePayload,
    shop: str = Depends(get_shop),
    backend: Backend = Depends(get_backend),
):
    return backend.update_attribute(shop, attribute_id, payload.name, payload.group_ids)


@app.delete("/attributes/{attribute_id}", status_code=204)
def delete_attribute(
    attribute_id: str, shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)
):
    backend.delete_attribute(shop, attribute_id)
    return Response(status_code=204)


# -----------------------
# Products and editing sessions
# -----------------------

@app.get("/products")
def list_products(shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)):
    return {"products": backend.list_products()}


@app.post("/sessions", status_code=201)
def open_session(
    payload: OpenSessionPayload, shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)
):
    return backend.open_session(shop, payload.handle)


@app.get("/sessions/{session_id}")
def get_session(session_id: str, shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)):
    return backend.get_session(shop, session_id)


@app.delete("/sessions/{session_id}", status_code=204)
def close_session(session_id: str, shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)):
    backend.close_session(shop, session_id)
    return Response(status_code=204)


@app.post("/sessions/{session_id}/groups/{group_id}/toggle")
def toggle_group(
    session_id: str,
    group_id: str,
    shop: str = Depends(get_shop),
    backend: Backend = Depends(get_backend),
):
    return backend.toggle_group(shop, session_id, group_id)


@app.put("/sessions/{session_id}/groups")
def set_selected_groups(
    session_id: str,
    payload: GroupSelectionPayload,
    shop: str = Depends(get_shop),
    backend: Backend = Depends(get_backend),
):
    return backend.set_selected_groups(shop, session_id, payload.group_ids)


@app.put("/sessions/{session_id}/values/{attribute_id}")
def set_value(
    session_id: str,
    attribute_id: str,
    payload: ValuePayload,
    shop: str = Depends(get_shop),
    backend: Backend = Depends(get_backend),
):
    return backend.set_value(shop, session_id, attribute_id, payload.value)


@app.put("/sessions/{session_id}/document")
def edit_document(
    session_id: str,
    payload: DocumentPayload,
    shop: str = Depends(get_shop),
    backend: Backend = Depends(get_backend),
):
    return backend.edit_document(shop, session_id, payload.raw)


@app.post("/sessions/{session_id}/save")
def save(session_id: str, shop: str = Depends(get_shop), backend: Backend = Depends(get_backend)):
    return backend.save(shop, session_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
