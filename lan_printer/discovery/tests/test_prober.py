"""Tests for the capability prober."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from lan_printer.discovery.prober import CapabilityProber, capabilities_from_response
from lan_printer.exceptions import ProbeError
from lan_printer.ipp.codec import IppOperation, IppResponse, IppTag
from lan_printer.ipp.exceptions import (
    IppConnectionError,
    IppParseError,
    IppRetryConnectionError,
    IppStatusError,
)
from lan_printer.models import PrinterStatus

URI = "ipp://printer.local:631/ipp/print"


def _printer_response(attributes: dict) -> IppResponse:
    return IppResponse(
        version=(1, 1),
        status_code=0,
        request_id=1,
        groups=[(IppTag.OPERATION, {}), (IppTag.PRINTER, attributes)],
    )


@pytest.fixture
def client() -> MagicMock:
    """Create a mock IPP client."""
    client = MagicMock()
    client.execute = AsyncMock()
    return client


@pytest.fixture
def prober(client: MagicMock) -> CapabilityProber:
    """Create a prober with a mock client."""
    return CapabilityProber(client, user_name="tester", timeout=5, logger=MagicMock())


class TestCapabilitiesFromResponse:
    """Test cases for capabilities_from_response."""

    def test_full_response(self) -> None:
        """Test mapping of every probed attribute."""
        response = _printer_response(
            {
                "printer-state": [4],
                "printer-state-reasons": ["none"],
                "color-supported": [True],
                "sides-supported": ["one-sided", "two-sided-long-edge"],
                "media-supported": ["iso_a4_210x297mm"],
                "document-format-supported": ["application/pdf", "image/pwg-raster"],
            }
        )

        capabilities, status = capabilities_from_response(response)

        assert status is PrinterStatus.PRINTING
        assert capabilities.printer_state == 4
        assert capabilities.color_supported is True
        assert capabilities.sides_supported == ["one-sided", "two-sided-long-edge"]
        assert capabilities.media_supported == ["iso_a4_210x297mm"]
        assert capabilities.document_formats == ["application/pdf", "image/pwg-raster"]
        assert capabilities.printer_state_reasons == ["none"]

    def test_missing_attributes_stay_unknown(self) -> None:
        """Test that absent attributes are not replaced by defaults."""
        capabilities, status = capabilities_from_response(_printer_response({}))

        assert status is None
        assert capabilities.color_supported is None
        assert capabilities.sides_supported is None
        assert capabilities.document_formats is None

    def test_unknown_state_code(self) -> None:
        """Test that an unrecognized printer-state yields no status."""
        _, status = capabilities_from_response(
            _printer_response({"printer-state": [42]})
        )

        assert status is None


class TestCapabilityProber:
    """Test cases for CapabilityProber."""

    def test_build_request(self, prober: CapabilityProber) -> None:
        """Test the Get-Printer-Attributes request."""
        request = prober.build_request(URI)

        assert request.operation == IppOperation.GET_PRINTER_ATTRIBUTES
        tag, attributes = request.groups[0]
        assert tag == IppTag.OPERATION
        by_name = {attribute.name: attribute.values for attribute in attributes}
        assert by_name["printer-uri"] == [URI]
        assert by_name["requesting-user-name"] == ["tester"]
        assert "document-format-supported" in by_name["requested-attributes"]
        assert "printer-state" in by_name["requested-attributes"]

    @pytest.mark.anyio
    async def test_probe_success(
        self, prober: CapabilityProber, client: MagicMock
    ) -> None:
        """Test a successful probe."""
        client.execute.return_value = _printer_response({"printer-state": [3]})

        result = await prober.probe(URI)

        assert result.status is PrinterStatus.IDLE
        assert result.capabilities is not None
        assert result.quirk is None
        assert client.execute.call_args.kwargs["timeout"] == 5

    @pytest.mark.anyio
    async def test_unparseable_response_is_a_quirk(
        self, prober: CapabilityProber, client: MagicMock
    ) -> None:
        """Test that a garbled answer counts as a reachable printer."""
        client.execute.side_effect = IppParseError("garbage")

        result = await prober.probe(URI)

        assert result.quirk == "unparseable-response"
        assert result.capabilities is None
        assert result.status is None

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "error",
        [
            IppConnectionError("refused"),
            IppRetryConnectionError("reset", first_status=500),
            IppStatusError("not found", status=404),
        ],
    )
    async def test_genuine_failures(
        self, prober: CapabilityProber, client: MagicMock, error: Exception
    ) -> None:
        """Test that other IPP failures raise ProbeError."""
        client.execute.side_effect = error

        with pytest.raises(ProbeError):
            await prober.probe(URI)
