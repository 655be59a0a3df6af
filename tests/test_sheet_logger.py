"""Tests for nomasoft/services/sheet_logger.py."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import httpx
import pytest

from nomasoft.services.sheet_logger import SheetLogger, build_sheet_record

WEBHOOK = "https://script.example.com/macros/s/sheet/exec"


def _record():
    return build_sheet_record(
        name="Ada Lovelace",
        email="ada@example.com",
        company=None,
        message="Looking to collaborate on a new project.",
        service_key="web",
        service_label="Web applications",
        locale="en",
        received_at=datetime(2026, 10, 19, 9, 30, tzinfo=UTC),
    )


def test_record_shape():
    assert _record() == {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "message": "Looking to collaborate on a new project.",
        "service": "Web applications",
        "serviceKey": "web",
        "locale": "en",
        "receivedAt": "2026-10-19T09:30:00+00:00",
    }


def test_record_timestamp_defaults_to_now():
    record = build_sheet_record(
        name="n",
        email="e@example.com",
        company=None,
        message="m",
        service_key="web",
        service_label="Web",
        locale="en",
    )
    received = datetime.fromisoformat(record["receivedAt"])
    assert received.tzinfo is not None
    assert abs((datetime.now(UTC) - received).total_seconds()) < 60


@pytest.mark.asyncio
async def test_noop_without_webhook(settings_factory, recording_transport):
    transport = recording_transport()
    sheet_logger = SheetLogger(
        settings_factory(), http_client=httpx.AsyncClient(transport=transport)
    )
    await sheet_logger.log(_record())
    assert transport.call_count == 0


@pytest.mark.asyncio
async def test_posts_json_record(settings_factory, recording_transport):
    transport = recording_transport()
    sheet_logger = SheetLogger(
        settings_factory(sheet_webhook_url=WEBHOOK),
        http_client=httpx.AsyncClient(transport=transport),
    )
    await sheet_logger.log(_record())

    request = transport.requests[0]
    assert str(request.url) == WEBHOOK
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content)["serviceKey"] == "web"


@pytest.mark.asyncio
async def test_network_failure_is_swallowed(
    settings_factory, recording_transport, caplog
):
    def boom(request):
        raise httpx.ReadTimeout("timed out", request=request)

    sheet_logger = SheetLogger(
        settings_factory(sheet_webhook_url=WEBHOOK),
        http_client=httpx.AsyncClient(transport=recording_transport(boom)),
    )
    with caplog.at_level(logging.ERROR, logger="nomasoft.services.sheet_logger"):
        await sheet_logger.log(_record())
    assert any("Sheet webhook error" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_rejected_status_is_logged(settings_factory, recording_transport, caplog):
    sheet_logger = SheetLogger(
        settings_factory(sheet_webhook_url=WEBHOOK),
        http_client=httpx.AsyncClient(
            transport=recording_transport(lambda request: httpx.Response(500))
        ),
    )
    with caplog.at_level(logging.WARNING, logger="nomasoft.services.sheet_logger"):
        await sheet_logger.log(_record())
    assert any("rejected" in r.getMessage() for r in caplog.records)


def test_record_keeps_company_when_given():
    record = build_sheet_record(
        name="Ada Lovelace",
        email="ada@example.com",
        company="Analytical Engines",
        message="m",
        service_key="web",
        service_label="Web applications",
        locale="en",
    )
    assert record["company"] == "Analytical Engines"
