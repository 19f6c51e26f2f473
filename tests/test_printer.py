import asyncio

from qr_ordering.services.printer import (
    EscposPrinterService,
    MockPrinterService,
    get_printer_service,
    reset_printer_service,
)


def test_mock_printer_writes_receipt_file(tmp_path):
    printer = MockPrinterService(output_dir=tmp_path / "receipts")

    result = asyncio.run(printer.print_receipt("TOTAL Rp 5.000\n", "order-1"))

    assert result.success is True
    assert result.destination == str(tmp_path / "receipts" / "order-1.txt")
    assert (tmp_path / "receipts" / "order-1.txt").read_text(encoding="utf-8") == "TOTAL Rp 5.000\n"
    assert printer.printed_count == 1


def test_mock_printer_reports_write_failures(tmp_path):
    blocker = tmp_path / "receipts"
    blocker.write_text("not a directory")
    printer = MockPrinterService(output_dir=blocker)

    result = asyncio.run(printer.print_receipt("x", "order-1"))

    assert result.success is False
    assert result.error_message
    assert printer.printed_count == 0


def test_network_printer_without_host_fails_cleanly():
    printer = EscposPrinterService(host="", port=9100, timeout=1)
    printer.host = None

    result = asyncio.run(printer.print_receipt("x", "order-1"))

    assert result.success is False
    assert result.to_dict()["error_message"] == "Printer host is not configured"
    assert asyncio.run(printer.health_check()) is False


def test_development_mode_uses_mock_printer():
    reset_printer_service()
    assert get_printer_service().provider_name == "mock"
    assert get_printer_service() is get_printer_service()
