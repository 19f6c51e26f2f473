"""
Mock Receipt Printer

Development stand-in for the thermal printer: each receipt is written to
``<data>/receipts/<order_id>.txt`` and logged.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from qr_ordering.core.config import get_settings
from qr_ordering.services.printer.base import BasePrinterService, PrintResult

logger = logging.getLogger(__name__)


class MockPrinterService(BasePrinterService):
    """Writes receipts to files instead of paper."""

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = output_dir or Path(get_settings().data_directory) / "receipts"
        self.printed_count = 0

    @property
    def provider_name(self) -> str:
        return "mock"

    async def print_receipt(self, text: str, order_id: str) -> PrintResult:
        path = self.output_dir / f"{order_id}.txt"
        try:
            await asyncio.to_thread(self._write, path, text)
        except OSError as e:
            logger.error(f"[MOCK PRINTER] Could not write receipt for {order_id}: {e}")
            return PrintResult(success=False, order_id=order_id, error_message=str(e))

        self.printed_count += 1
        logger.info(f"[MOCK PRINTER] Receipt for order {order_id} written to {path}")
        logger.debug(f"[MOCK PRINTER]\n{text}")
        return PrintResult(success=True, order_id=order_id, destination=str(path))

    @staticmethod
    def _write(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    async def health_check(self) -> bool:
        return True
