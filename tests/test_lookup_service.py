"""Tests for lookup orchestration without the HTTP layer."""

from unittest.mock import AsyncMock, Mock

import pytest

from lookup_gateway.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from lookup_gateway.adapters.rdap.base import AbstractRdapFetcher
from lookup_gateway.core.admission import AdmissionContext
from lookup_gateway.core.errors import UpstreamAppError, ValidationAppError
from lookup_gateway.services.admission_service import AdmissionController
from lookup_gateway.services.lookup_service import (
    MISSING_FIELDS_MESSAGE,
    LookupService,
    parse_lookup_payload,
)

CLIENT = "203.0.113.5"


@pytest.fixture
def fetcher() -> AsyncMock:
    mock = AsyncMock(spec=AbstractRdapFetcher)
    mock.fetch_object.return_value = {"objectClassName": "domain", "ldhName": "example.com"}
    return mock


@pytest.fixture
def controller() -> AdmissionController:
    return AdmissionController(InMemoryRateLimitStore(), clock=Mock(return_value=100.0))


@pytest.fixture
def service(fetcher: AsyncMock, controller: AdmissionController) -> LookupService:
    return LookupService(fetcher=fetcher, admission=controller)


class TestParseLookupPayload:
    def test_valid_payload(self) -> None:
        request = parse_lookup_payload(b'{"type": "domain", "object": "example.com"}')

        assert request.type == "domain"
        assert request.object == "example.com"

    def test_values_are_forwarded_unchanged(self) -> None:
        request = parse_lookup_payload(b'{"type": "domain", "object": " a.com "}')

        assert (request.type, request.object) == ("domain", " a.com ")

    def test_whitespace_object_counts_as_present(self) -> None:
        request = parse_lookup_payload(b'{"type": "domain", "object": "  "}')

        assert request.object == "  "

    def test_integer_object_is_forwarded_as_text(self) -> None:
        request = parse_lookup_payload(b'{"type": "asn", "object": 15169}')

        assert request.object == "15169"

    def test_extra_fields_are_ignored(self) -> None:
        request = parse_lookup_payload(
            b'{"type": "domain", "object": "example.com", "captchaToken": "abc"}'
        )

        assert request.object == "example.com"

    @pytest.mark.parametrize(
        "body",
        [
            b'{"object": "example.com"}',
            b'{"type": "domain"}',
            b'{"type": "", "object": "example.com"}',
            b'{"type": "asn", "object": 0}',
            b'{"type": "domain", "object": true}',
            b'{"type": "domain", "object": ["a.com"]}',
            b'{"type": null, "object": "example.com"}',
        ],
    )
    def test_missing_or_empty_fields(self, body: bytes) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            parse_lookup_payload(body)

        assert exc_info.value.code == "lookup_missing_fields"
        assert exc_info.value.message == MISSING_FIELDS_MESSAGE

    @pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]", b'"domain"', b"\xff\xfe"])
    def test_body_must_be_json_object(self, body: bytes) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            parse_lookup_payload(body)

        assert exc_info.value.code == "lookup_invalid_body"
        assert exc_info.value.message == 'Please provide both "type" and "object".'


class TestLookupService:
    @pytest.mark.asyncio
    async def test_successful_lookup_is_recorded(
        self, service: LookupService, fetcher: AsyncMock, controller: AdmissionController
    ) -> None:
        result = await service.lookup(
            b'{"type": "domain", "object": "example.com"}', AdmissionContext(client_id=CLIENT)
        )

        assert result["ldhName"] == "example.com"
        fetcher.fetch_object.assert_awaited_once_with("domain", "example.com")
        record = controller.store.get(CLIENT)
        assert record.request_count == 1
        assert record.last_request_at == 100.0

    @pytest.mark.asyncio
    async def test_bypassed_lookup_is_not_recorded(
        self, service: LookupService, controller: AdmissionController
    ) -> None:
        await service.lookup(
            b'{"type": "domain", "object": "example.com"}',
            AdmissionContext(client_id=CLIENT, bypassed=True),
        )

        assert controller.store.get(CLIENT).request_count == 0

    @pytest.mark.asyncio
    async def test_invalid_payload_skips_fetch_and_record(
        self, service: LookupService, fetcher: AsyncMock, controller: AdmissionController
    ) -> None:
        with pytest.raises(ValidationAppError):
            await service.lookup(b'{"type": "domain"}', AdmissionContext(client_id=CLIENT))

        fetcher.fetch_object.assert_not_awaited()
        assert controller.store.get(CLIENT).request_count == 0

    @pytest.mark.asyncio
    async def test_failed_fetch_is_not_recorded(
        self, service: LookupService, fetcher: AsyncMock, controller: AdmissionController
    ) -> None:
        fetcher.fetch_object.side_effect = UpstreamAppError(
            code="rdap_upstream_failed", message="Primary request failed: Not Found"
        )

        with pytest.raises(UpstreamAppError):
            await service.lookup(
                b'{"type": "ip", "object": "192.0.2.1"}', AdmissionContext(client_id=CLIENT)
            )

        assert controller.store.get(CLIENT).request_count == 0

    @pytest.mark.asyncio
    async def test_object_reaches_fetcher_unstripped(
        self, service: LookupService, fetcher: AsyncMock
    ) -> None:
        await service.lookup(
            b'{"type": "domain", "object": " a.com "}', AdmissionContext(client_id=CLIENT)
        )

        fetcher.fetch_object.assert_awaited_once_with("domain", " a.com ")
