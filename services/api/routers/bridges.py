"""
Bridge listing / inspection record endpoints.

Same URL for both directions: GET lists bridges, POST appends a record.
Responses are always HTTP 200; success or failure is in the JSON body.
"""
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from typing import Annotated, Any, Dict
import logging

from core.request_router import RequestRouter

logger = logging.getLogger(__name__)
router = APIRouter(tags=["bridges"])


def get_request_router(request: Request) -> RequestRouter:
    """Request router built at startup (see main.create_app)."""
    return request.app.state.request_router


Handler = Annotated[RequestRouter, Depends(get_request_router)]


@router.get("/", response_model=Dict[str, Any])
@router.get("/exec", response_model=Dict[str, Any], include_in_schema=False)
def list_bridges(handler: Handler):
    """List every bridge spreadsheet under the root folder."""
    return handler.handle_list()


@router.post("/", response_model=Dict[str, Any])
@router.post("/exec", response_model=Dict[str, Any], include_in_schema=False)
async def append_record(request: Request, handler: Handler):
    """
    Append one inspection record.

    The body is read raw: field apps post JSON as text/plain to avoid a CORS
    preflight, so Content-Type is ignored.
    """
    body = await request.body()
    return await run_in_threadpool(handler.handle_append, body)
