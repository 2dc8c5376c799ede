"""
Workflow API - FastAPI router for order-item status changes.

The acting role comes from the caller's auth layer as a plain string. Nothing
is persisted here; a 200 means the caller may write the new status.
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..engine.errors import Forbidden
from ..workflow.order_item_status import OrderItemStatus, OrderItemStatusWorkflow
from .state import get_workflow

router = APIRouter(prefix="/order-items/statuses", tags=["workflow"])


class TransitionRequest(BaseModel):
    role: str
    current: OrderItemStatus
    requested: OrderItemStatus


class AllowedResponse(BaseModel):
    role: str
    current: OrderItemStatus
    allowed: list[OrderItemStatus]
    terminal: bool


@router.get("", response_model=list[OrderItemStatus])
async def list_statuses():
    """All order-item statuses in pipeline order."""
    return list(OrderItemStatus)


@router.get("/allowed", response_model=AllowedResponse)
async def allowed_statuses(
    role: str,
    current: OrderItemStatus,
    workflow: OrderItemStatusWorkflow = Depends(get_workflow),
):
    """Statuses the role may move an item to from `current`."""
    allowed = workflow.allowed_next_statuses(role, current)
    return AllowedResponse(
        role=role,
        current=current,
        allowed=sorted(allowed, key=list(OrderItemStatus).index),
        terminal=workflow.is_terminal(current),
    )


@router.post("/transition")
async def transition(
    req: TransitionRequest,
    workflow: OrderItemStatusWorkflow = Depends(get_workflow),
):
    """Validate a status change. 403 lists the statuses currently permitted."""
    try:
        new_status = workflow.require_transition(req.role, req.current, req.requested)
    except Forbidden as e:
        raise HTTPException(status_code=403, detail=e.to_dict())
    return {
        "status": new_status,
        "changed": new_status != req.current,
    }
