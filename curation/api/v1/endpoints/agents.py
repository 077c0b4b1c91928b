"""Agent configuration endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from curation.database.base import get_async_session
from curation.schemas.agents import AgentConfigurationResponse, AgentConfigurationUpdate
from curation.schemas.common import ApiResponse
from curation.services.agent_configuration_service import AgentConfigurationService
from curation.utils.responses import create_api_response

router = APIRouter()


async def get_agent_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> AgentConfigurationService:
    return AgentConfigurationService(db_session)


@router.get(
    "/",
    response_model=ApiResponse,
    summary="List agent configurations",
    operation_id="list_agent_configurations",
)
async def list_agents(
    request: Request,
    agent_service: Annotated[AgentConfigurationService, Depends(get_agent_service)],
    enabled_only: bool = Query(default=False),
) -> ApiResponse:
    configurations = await agent_service.list(enabled_only=enabled_only)
    return create_api_response(
        data=[AgentConfigurationResponse.model_validate(c) for c in configurations],
        request=request,
    )


@router.get(
    "/stats",
    response_model=ApiResponse,
    summary="Processing statistics per agent",
    operation_id="get_agent_processing_stats",
)
async def agent_stats(
    request: Request,
    agent_service: Annotated[AgentConfigurationService, Depends(get_agent_service)],
) -> ApiResponse:
    return create_api_response(data=await agent_service.stats(), request=request)


@router.get(
    "/{agent_type}",
    response_model=ApiResponse,
    summary="Get an agent configuration",
    operation_id="get_agent_configuration",
)
async def get_agent(
    request: Request,
    agent_type: str,
    agent_service: Annotated[AgentConfigurationService, Depends(get_agent_service)],
) -> ApiResponse:
    configuration = await agent_service.get(agent_type)
    return create_api_response(
        data=AgentConfigurationResponse.model_validate(configuration), request=request
    )


@router.patch(
    "/{agent_type}",
    response_model=ApiResponse,
    summary="Update an agent configuration",
    operation_id="update_agent_configuration",
)
async def update_agent(
    request: Request,
    agent_type: str,
    payload: AgentConfigurationUpdate,
    agent_service: Annotated[AgentConfigurationService, Depends(get_agent_service)],
) -> ApiResponse:
    """Partial update; send ``expected_version`` to guard against lost updates."""
    changes = payload.model_dump(exclude_unset=True, exclude={"expected_version"})
    configuration = await agent_service.update(
        agent_type, expected_version=payload.expected_version, **changes
    )
    return create_api_response(
        data=AgentConfigurationResponse.model_validate(configuration),
        message=f"Configuration updated to version {configuration.version}",
        request=request,
    )


@router.post(
    "/{agent_type}/enable",
    response_model=ApiResponse,
    summary="Enable an agent",
    operation_id="enable_agent",
)
async def enable_agent(
    request: Request,
    agent_type: str,
    agent_service: Annotated[AgentConfigurationService, Depends(get_agent_service)],
) -> ApiResponse:
    configuration = await agent_service.enable(agent_type)
    return create_api_response(
        data=AgentConfigurationResponse.model_validate(configuration),
        message=f"{agent_type} enabled",
        request=request,
    )


@router.post(
    "/{agent_type}/disable",
    response_model=ApiResponse,
    summary="Disable an agent",
    operation_id="disable_agent",
)
async def disable_agent(
    request: Request,
    agent_type: str,
    agent_service: Annotated[AgentConfigurationService, Depends(get_agent_service)],
) -> ApiResponse:
    configuration = await agent_service.disable(agent_type)
    return create_api_response(
        data=AgentConfigurationResponse.model_validate(configuration),
        message=f"{agent_type} disabled",
        request=request,
    )
