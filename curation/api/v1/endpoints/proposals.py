"""Review endpoints for elevation proposals."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from curation.database.base import get_async_session
from curation.domain.value_objects import ReviewStatus
from curation.schemas.common import ApiResponse
from curation.schemas.proposals import ProposalResponse, ReviewRequest
from curation.services.review_service import ReviewService
from curation.utils.logging import get_logger
from curation.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_review_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> ReviewService:
    return ReviewService(db_session)


@router.get(
    "/",
    response_model=ApiResponse,
    summary="List proposals by review status",
    operation_id="list_proposals",
)
async def list_proposals(
    request: Request,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
    review_status: ReviewStatus = Query(default=ReviewStatus.PENDING, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> ApiResponse:
    proposals = await review_service.list_by_status(review_status, skip=skip, limit=limit)
    return create_api_response(
        data=[ProposalResponse.model_validate(p) for p in proposals],
        message=f"{len(proposals)} {review_status.value} proposals",
        request=request,
    )


@router.get(
    "/summary",
    response_model=ApiResponse,
    summary="Pending proposals grouped by agent type",
    operation_id="get_pending_proposal_summary",
)
async def pending_summary(
    request: Request,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> ApiResponse:
    summary = await review_service.pending_summary()
    return create_api_response(data=summary, message="Pending proposal summary", request=request)


@router.get(
    "/{proposal_id}",
    response_model=ApiResponse,
    summary="Get a proposal",
    operation_id="get_proposal",
)
async def get_proposal(
    request: Request,
    proposal_id: UUID,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> ApiResponse:
    proposal = await review_service.get(proposal_id)
    return create_api_response(data=ProposalResponse.model_validate(proposal), request=request)


@router.post(
    "/{proposal_id}/approve",
    response_model=ApiResponse,
    summary="Approve a pending proposal",
    operation_id="approve_proposal",
)
async def approve_proposal(
    request: Request,
    proposal_id: UUID,
    payload: ReviewRequest,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> ApiResponse:
    proposal = await review_service.approve(proposal_id, payload.reviewer_comments)
    LOGGER.info(f"Proposal {proposal_id} approved via API")
    return create_api_response(
        data=ProposalResponse.model_validate(proposal), message="Proposal approved", request=request
    )


@router.post(
    "/{proposal_id}/deny",
    response_model=ApiResponse,
    summary="Deny a pending proposal",
    operation_id="deny_proposal",
)
async def deny_proposal(
    request: Request,
    proposal_id: UUID,
    payload: ReviewRequest,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> ApiResponse:
    proposal = await review_service.deny(proposal_id, payload.reviewer_comments)
    LOGGER.info(f"Proposal {proposal_id} denied via API")
    return create_api_response(
        data=ProposalResponse.model_validate(proposal), message="Proposal denied", request=request
    )
