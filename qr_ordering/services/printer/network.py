"""
ESC/POS Network Printer

Sends receipts to a thermal printer on the restaurant network using
python-escpos. The library is imported lazily so development installs
do not need it.
"""

import asyncio
import logging
from typing import Optional

from qr_ordering.core.config import get_settings
from qr_ordering.services.printer.base import BasePrinterService, PrintResult

logger = logging.getLogger(__name__)


def check_printer_dependencies() -> tuple[bool, str]:
    """Return whether python-escpos is importable, with a reason."""
    try:
        from escpos.printer import Network  # noqa: F401
    except ImportError as e:
        return False, f"python-escpos is not installed ({e})"
    return True, "ok"


class EscposPrinterService(BasePrinterService):

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        timeout: Optional[int] = None,
    ):
        settings = get_settings()
        self.host = host or settings.printer_host
        self.port = port or settings.printer_port
        self.timeout = timeout or settings.printer_timeout

        if not self.host:
            logger.warning("PRINTER_HOST not configured, printing will fail")

    @property
    def provider_name(self) -> str:
        return "escpos"

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def _print_sync(self, text: str) -> None:
        from escpos.printer import Network

        printer = Network(self.host, port=self.port, timeout=self.timeout)
        try:
            printer.set(align="left")
            printer.text(text if text.endswith("\n") else text + "\n")
            printer.cut()
        finally:
            printer.close()

    async def print_receipt(self, text: str, order_id: str) -> PrintResult:
        if not self.host:
            return PrintResult(
                success=False,
                order_id=order_id,
                error_message="Printer host is not configured",
            )

        ok, reason = check_printer_dependencies()
        if not ok:
            logger.error(f"Cannot print order {order_id}: {reason}")
            return PrintResult(success=False, order_id=order_id, error_message=reason)

        try:
            await asyncio.to_thread(self._print_sync, text)
        except Exception as e:
            logger.exception(f"Printing order {order_id} on {self.address} failed")
            return PrintResult(
                success=False,
                order_id=order_id,
                destination=self.address,
                error_message=str(e),
            )

        logger.info(f"Receipt for order {order_id} sent to {self.address}")
        return PrintResult(success=True, order_id=order_id, destination=self.address)

    async def health_check(self) -> bool:
        if not self.host:
            return False
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Printer {self.address} unreachable: {e}")
            return False
        writer.close()
        await writer.wait_closed()
        return True
