"""Tests for the local spooler transport."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

from lan_printer.dispatch.spooler import SpoolerTransport, parse_job_id
from lan_printer.exceptions import SpoolerError
from lan_printer.models import Printer, PrintJobOptions, ServiceAnnouncement

LP_OUTPUT = b"request id is Office_Printer-42 (1 file(s))\n"


def _process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> Mock:
    proc = Mock()
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.returncode = returncode
    proc.kill = Mock()
    proc.wait = AsyncMock(return_value=returncode)
    return proc


@pytest.fixture
def printer() -> Printer:
    """Create a registry entry with a matched queue."""
    printer = Printer.from_announcement(
        ServiceAnnouncement(
            name="Office Printer",
            service_type="_ipp._tcp.local.",
            host="office.local",
            port=631,
        )
    )
    printer.matched_queue_name = "Office_Printer"
    return printer


@pytest.fixture
def spooler(tmp_path: Path) -> SpoolerTransport:
    """Create an available spooler staging into a temp dir."""
    return SpoolerTransport(tmp_path, timeout=5, available=True, logger=MagicMock())


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("request id is Office_Printer-42 (1 file(s))", "Office_Printer-42"),
        ("lp: warning\nrequest id is HP-7 (1 file(s))\n", "HP-7"),
        ("", None),
        ("no job here", None),
    ],
)
def test_parse_job_id(output: str, expected: str | None) -> None:
    """Test job id extraction from lp output."""
    assert parse_job_id(output) == expected


class TestSpoolerTransport:
    """Test cases for SpoolerTransport."""

    def test_resolve_queue(self, printer: Printer) -> None:
        """Test that the matched queue wins over the sanitized name."""
        assert SpoolerTransport.resolve_queue(printer) == "Office_Printer"
        printer.matched_queue_name = None
        assert SpoolerTransport.resolve_queue(printer) == "Office_Printer"
        printer.name = "Canon G3010 (desk)"
        assert SpoolerTransport.resolve_queue(printer) == "Canon_G3010__desk_"

    def test_build_command(self, tmp_path: Path) -> None:
        """Test the lp command line."""
        cmd = SpoolerTransport.build_command(
            "Office_Printer",
            tmp_path / "job.pdf",
            "report.pdf",
            PrintJobOptions(copies=2, sides="two-sided-long-edge", color_mode="monochrome"),
        )

        assert cmd == [
            "lp",
            "-d",
            "Office_Printer",
            "-n",
            "2",
            "-t",
            "report.pdf",
            "-o",
            "sides=two-sided-long-edge",
            "-o",
            "print-color-mode=monochrome",
            str(tmp_path / "job.pdf"),
        ]

    def test_spool_paths_are_unique(self, spooler: SpoolerTransport) -> None:
        """Test that two staged files never collide and keep the extension."""
        first = spooler.spool_path("report.pdf")
        second = spooler.spool_path("report.pdf")

        assert first != second
        assert first.suffix == ".pdf"
        assert first.name.startswith("lan-printer-")

    @pytest.mark.anyio
    async def test_submit_success_removes_file(
        self, spooler: SpoolerTransport, printer: Printer, tmp_path: Path
    ) -> None:
        """Test a successful submission and staged file cleanup."""
        staged = {}

        async def fake_exec(*cmd, **kwargs):
            path = Path(cmd[-1])
            staged["path"] = path
            staged["content"] = path.read_bytes()
            return _process(stdout=LP_OUTPUT)

        with patch("asyncio.create_subprocess_exec", side_effect=fake_exec):
            result = await spooler.submit(
                printer, b"%PDF-1.7", "report.pdf", PrintJobOptions()
            )

        assert result.job_id == "Office_Printer-42"
        assert result.job_state == "unknown"
        assert result.route == "spooler"
        assert result.printer_id == printer.id
        assert staged["content"] == b"%PDF-1.7"
        assert not staged["path"].exists()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.anyio
    async def test_submit_failure_removes_file(
        self, spooler: SpoolerTransport, printer: Printer, tmp_path: Path
    ) -> None:
        """Test that a non-zero exit raises SpoolerError with diagnostics."""
        proc = _process(stderr=b"lp: The printer or class does not exist.\n", returncode=1)

        with (
            patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)),
            pytest.raises(SpoolerError) as exc_info,
        ):
            await spooler.submit(printer, b"data", "report.pdf", PrintJobOptions())

        assert exc_info.value.returncode == 1
        assert "does not exist" in exc_info.value.diagnostics
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.anyio
    async def test_submit_command_missing(
        self, spooler: SpoolerTransport, printer: Printer, tmp_path: Path
    ) -> None:
        """Test that a missing lp binary raises SpoolerError."""
        with (
            patch(
                "asyncio.create_subprocess_exec",
                AsyncMock(side_effect=FileNotFoundError("lp")),
            ),
            pytest.raises(SpoolerError),
        ):
            await spooler.submit(printer, b"data", "report.pdf", PrintJobOptions())

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.anyio
    async def test_submit_timeout_kills_process(
        self, printer: Printer, tmp_path: Path
    ) -> None:
        """Test that a hanging lp is killed."""
        spooler = SpoolerTransport(
            tmp_path, timeout=0.01, available=True, logger=MagicMock()
        )

        async def hang() -> tuple[bytes, bytes]:
            await asyncio.sleep(3600)
            return b"", b""

        proc = _process()
        proc.communicate = hang

        with (
            patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)),
            pytest.raises(SpoolerError, match="timed out"),
        ):
            await spooler.submit(printer, b"data", "report.pdf", PrintJobOptions())

        proc.kill.assert_called_once()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.anyio
    async def test_submit_cancelled_kills_process(
        self, spooler: SpoolerTransport, printer: Printer, tmp_path: Path
    ) -> None:
        """Test that cancelling a submission kills lp and removes the staged file."""
        started = asyncio.Event()

        async def hang() -> tuple[bytes, bytes]:
            started.set()
            await asyncio.sleep(3600)
            return b"", b""

        proc = _process()
        proc.communicate = hang

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            task = asyncio.create_task(
                spooler.submit(printer, b"data", "report.pdf", PrintJobOptions())
            )
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        proc.kill.assert_called_once()
        proc.wait.assert_awaited_once()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.anyio
    async def test_kill_tolerates_exited_process(
        self, spooler: SpoolerTransport, printer: Printer
    ) -> None:
        """Test that a process exiting before the kill still reports the timeout."""
        spooler._timeout = 0.01  # noqa: SLF001

        async def hang() -> tuple[bytes, bytes]:
            await asyncio.sleep(3600)
            return b"", b""

        proc = _process()
        proc.communicate = hang
        proc.kill.side_effect = ProcessLookupError()

        with (
            patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)),
            pytest.raises(SpoolerError, match="timed out"),
        ):
            await spooler.submit(printer, b"data", "report.pdf", PrintJobOptions())

        proc.wait.assert_awaited_once()

    @pytest.mark.anyio
    async def test_staging_failure(self, printer: Printer, tmp_path: Path) -> None:
        """Test that an unwritable spool directory raises SpoolerError."""
        spooler = SpoolerTransport(
            tmp_path / "missing", available=True, logger=MagicMock()
        )

        with (
            patch("asyncio.create_subprocess_exec") as mock_exec,
            pytest.raises(SpoolerError, match="Unable to stage"),
        ):
            await spooler.submit(printer, b"data", "report.pdf", PrintJobOptions())

        mock_exec.assert_not_called()

    @pytest.mark.anyio
    async def test_list_queues(self, spooler: SpoolerTransport) -> None:
        """Test parsing of lpstat -a output."""
        proc = _process(
            stdout=(
                b"Office_Printer accepting requests since Mon 01 Jan 2024\n"
                b"\n"
                b"EPSON_L3250_Series_2 accepting requests since Mon 01 Jan 2024\n"
            )
        )

        with patch(
            "asyncio.create_subprocess_exec", AsyncMock(return_value=proc)
        ) as mock_exec:
            queues = await spooler.list_queues()

        assert queues == ["Office_Printer", "EPSON_L3250_Series_2"]
        assert mock_exec.call_args.args[:2] == ("lpstat", "-a")

    @pytest.mark.anyio
    async def test_list_queues_failure(self, spooler: SpoolerTransport) -> None:
        """Test that lpstat errors give an empty list."""
        proc = _process(stderr=b"lpstat: No destinations added.\n", returncode=1)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            assert await spooler.list_queues() == []

    @pytest.mark.anyio
    async def test_list_queues_unavailable(self, tmp_path: Path) -> None:
        """Test that no command runs without a spooler."""
        spooler = SpoolerTransport(tmp_path, available=False, logger=MagicMock())

        with patch("asyncio.create_subprocess_exec") as mock_exec:
            assert await spooler.list_queues() == []

        mock_exec.assert_not_called()
        assert not spooler.available
