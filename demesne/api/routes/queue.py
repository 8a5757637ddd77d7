"""/api/v1/actors/{actor_id}/queue — thin adapter over ActionQueueManager."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from demesne.api.dependencies import get_runtime
from demesne.api.runtime import ServerRuntime
from demesne.api.schemas import QueueResponse, QueueSchema, StartQueueRequest
from demesne.core.models import QueueResult

router = APIRouter()


def _respond(result: QueueResult) -> QueueResponse | JSONResponse:
    body = QueueResponse(
        success=result.success,
        message=result.message,
        queue=QueueSchema.from_record(result.queue) if result.queue else None,
    )
    if not result.success:
        return JSONResponse(status_code=422, content=body.model_dump())
    return body


@router.post("/actors/{actor_id}/queue", response_model=QueueResponse)
def start_queue(
    actor_id: int,
    body: StartQueueRequest,
    runtime: ServerRuntime = Depends(get_runtime),
):
    return _respond(runtime.queues.start(actor_id, body.action_type, body.action_params, body.total))


@router.post("/actors/{actor_id}/queue/cancel", response_model=QueueResponse)
def cancel_queue(actor_id: int, runtime: ServerRuntime = Depends(get_runtime)):
    return _respond(runtime.queues.cancel(actor_id))


@router.post("/actors/{actor_id}/queue/{queue_id}/dismiss", response_model=QueueResponse)
def dismiss_queue(actor_id: int, queue_id: int, runtime: ServerRuntime = Depends(get_runtime)):
    return _respond(runtime.queues.dismiss(actor_id, queue_id))


@router.get("/actors/{actor_id}/queue", response_model=QueueSchema | None)
def latest_queue(actor_id: int, runtime: ServerRuntime = Depends(get_runtime)) -> QueueSchema | None:
    record = runtime.queues.get_latest_visible(actor_id)
    return QueueSchema.from_record(record) if record else None


@router.get("/actors/{actor_id}/queue/active", response_model=QueueSchema)
def active_queue(actor_id: int, runtime: ServerRuntime = Depends(get_runtime)) -> QueueSchema:
    record = runtime.queues.get_active(actor_id)
    if record is None:
        raise HTTPException(status_code=404, detail="You have no active queue.")
    return QueueSchema.from_record(record)


@router.get("/actors/{actor_id}/queue/history", response_model=list[QueueSchema])
def queue_history(actor_id: int, limit: int = 20, runtime: ServerRuntime = Depends(get_runtime)) -> list[QueueSchema]:
    return [QueueSchema.from_record(r) for r in runtime.queues.get_history(actor_id, limit)]
