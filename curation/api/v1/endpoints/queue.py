"""Processing queue endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from temporalio.client import Client as TemporalClient
from temporalio.common import WorkflowIDReusePolicy
from temporalio.exceptions import WorkflowAlreadyStartedError

from curation.core.config import settings
from curation.database.base import get_async_session
from curation.domain.processing_queue import ProcessingQueueItem
from curation.schemas.common import ApiResponse
from curation.schemas.queue import FileChangeNotification, QueueItemResponse
from curation.services.processing_queue_service import ProcessingQueueService
from curation.temporal.client import get_temporal_client
from curation.temporal.workflows.process_file_change import ProcessFileChangeWorkflow
from curation.utils.logging import get_logger
from curation.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_queue_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> ProcessingQueueService:
    return ProcessingQueueService(db_session)


async def start_processing_workflow(temporal_client: TemporalClient, item: ProcessingQueueItem) -> str:
    """Start the item's workflow unless one is already running for it.

    The workflow id is derived from the item, so a re-sent notification
    cannot start a second run.
    """
    workflow_id = f"process-file-{item.id}"
    try:
        await temporal_client.start_workflow(
            ProcessFileChangeWorkflow.run,
            str(item.id),
            id=workflow_id,
            task_queue=settings.temporal_task_queue,
            id_reuse_policy=WorkflowIDReusePolicy.ALLOW_DUPLICATE,
        )
        LOGGER.info(f"Started {workflow_id} for {item.file_path}")
    except WorkflowAlreadyStartedError:
        LOGGER.info(f"{workflow_id} is already running")
    return workflow_id


@router.get(
    "/stats",
    response_model=ApiResponse,
    summary="Queue item counts by status",
    operation_id="get_queue_stats",
)
async def queue_stats(
    request: Request,
    queue_service: Annotated[ProcessingQueueService, Depends(get_queue_service)],
) -> ApiResponse:
    stats = await queue_service.stats()
    return create_api_response(
        data={**stats.model_dump(mode="json"), "total": stats.total}, request=request
    )


@router.post(
    "/",
    response_model=ApiResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue a file-change notification for processing",
    operation_id="enqueue_file_change",
)
async def enqueue_file_change(
    request: Request,
    payload: FileChangeNotification,
    queue_service: Annotated[ProcessingQueueService, Depends(get_queue_service)],
    temporal_client: Annotated[TemporalClient, Depends(get_temporal_client)],
) -> ApiResponse:
    """Queue the change and start its processing workflow."""
    item = await queue_service.enqueue(payload.file_path, payload.message_id, payload.metadata)
    workflow_id = await start_processing_workflow(temporal_client, item)

    return create_api_response(
        data={
            "item": QueueItemResponse.model_validate(item).model_dump(mode="json"),
            "workflow_id": workflow_id,
        },
        message="File change queued",
        request=request,
    )


@router.post(
    "/requeue-failed",
    response_model=ApiResponse,
    summary="Requeue failed items that still have retry budget",
    operation_id="requeue_failed_items",
)
async def requeue_failed(
    request: Request,
    queue_service: Annotated[ProcessingQueueService, Depends(get_queue_service)],
    temporal_client: Annotated[TemporalClient, Depends(get_temporal_client)],
) -> ApiResponse:
    requeued = await queue_service.requeue_failed()
    workflow_ids = [await start_processing_workflow(temporal_client, item) for item in requeued]
    return create_api_response(
        data={"requeued": len(requeued), "workflow_ids": workflow_ids},
        message=f"Requeued {len(requeued)} items",
        request=request,
    )
