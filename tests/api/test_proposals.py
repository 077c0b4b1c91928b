import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi import status

from curation.api.v1.endpoints.proposals import get_review_service
from curation.core.exceptions import InvalidStateError, NotFoundError
from curation.domain.elevation_proposal import ElevationProposal
from curation.domain.value_objects import ReviewStatus
from curation.main import app
from curation.services.review_service import ReviewService


@pytest.fixture
def mock_review_service():
    service = AsyncMock(spec=ReviewService)
    app.dependency_overrides[get_review_service] = lambda: service
    return service


@pytest.fixture
def proposal(configuration_id) -> ElevationProposal:
    return ElevationProposal.create(
        "/n.md", "Blogging", "orig", "curated", 0.85, "because X", "/out.md", configuration_id
    )


def test_list_pending_proposals(test_client, mock_review_service, proposal):
    mock_review_service.list_by_status.return_value = [proposal]

    response = test_client.get("/api/v1/proposals/?status=Pending&limit=10")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] is True
    assert body["data"]["total"] == 1
    item = body["data"]["items"][0]
    assert item["id"] == str(proposal.id)
    assert item["review_status"] == "Pending"
    assert item["confidence_score"] == "0.85"
    mock_review_service.list_by_status.assert_awaited_once_with(ReviewStatus.PENDING, skip=0, limit=10)


def test_approve_proposal(test_client, mock_review_service, proposal):
    proposal.approve("looks good")
    mock_review_service.approve.return_value = proposal

    response = test_client.post(
        f"/api/v1/proposals/{proposal.id}/approve", json={"reviewer_comments": "looks good"}
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["review_status"] == "Approved"
    assert data["reviewer_comments"] == "looks good"
    mock_review_service.approve.assert_awaited_once_with(proposal.id, "looks good")


def test_approving_a_decided_proposal_conflicts(test_client, mock_review_service):
    mock_review_service.approve.side_effect = InvalidStateError(
        "Cannot approve proposal with status Denied", current_state=ReviewStatus.DENIED
    )

    response = test_client.post(f"/api/v1/proposals/{uuid.uuid4()}/approve", json={})

    assert response.status_code == status.HTTP_409_CONFLICT
    detail = response.json()["detail"]
    assert detail["status"] == 409
    assert "Denied" in detail["detail"]


def test_unknown_proposal_is_404(test_client, mock_review_service):
    proposal_id = uuid.uuid4()
    mock_review_service.get.side_effect = NotFoundError(f"Elevation proposal {proposal_id} not found")

    response = test_client.get(f"/api/v1/proposals/{proposal_id}")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"]["instance"] == f"/api/v1/proposals/{proposal_id}"


def test_deny_rejects_overlong_comments(test_client, mock_review_service):
    response = test_client.post(
        f"/api/v1/proposals/{uuid.uuid4()}/deny", json={"reviewer_comments": "x" * 2001}
    )

    assert response.status_code == 422
    mock_review_service.deny.assert_not_awaited()


def test_pending_summary(test_client, mock_review_service):
    mock_review_service.pending_summary.return_value = []

    response = test_client.get("/api/v1/proposals/summary")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"] == {"items": [], "total": 0}
