"""
Tests for the operational endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient, test_event, attendee_headers):
    await client.post(f"/api/v1/tickets/{test_event.id}/generate-ticket", headers=attendee_headers)

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert 'ticket_issuance_total{result="issued"}' in response.text


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient):
    response = await client.get("/", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
