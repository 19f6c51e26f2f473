"""
Printer Service Factory

Usage:
    from qr_ordering.services.printer import get_printer_service

    printer = get_printer_service()
    result = await printer.print_receipt(text, order.id)

Environment Switching:
    - ENV_MODE=development → MockPrinterService (receipts written to files)
    - ENV_MODE=staging → EscposPrinterService
    - ENV_MODE=production → EscposPrinterService
"""

import logging
from functools import lru_cache

from qr_ordering.core.config import get_settings
from qr_ordering.services.printer.base import BasePrinterService, PrintResult
from qr_ordering.services.printer.mock import MockPrinterService
from qr_ordering.services.printer.network import EscposPrinterService

logger = logging.getLogger(__name__)


@lru_cache()
def get_printer_service() -> BasePrinterService:
    """Get the configured printer service instance (cached per process)."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Printer Service: Using MockPrinterService (development mode)")
        return MockPrinterService()

    logger.info(
        f"Printer Service: Using EscposPrinterService "
        f"({settings.env_mode.value} mode)"
    )
    return EscposPrinterService()


def reset_printer_service() -> None:
    """Clear the cached printer service instance."""
    get_printer_service.cache_clear()
    logger.debug("Printer service cache cleared")


__all__ = [
    "get_printer_service",
    "reset_printer_service",
    "BasePrinterService",
    "PrintResult",
    "MockPrinterService",
    "EscposPrinterService",
]
