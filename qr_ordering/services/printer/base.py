"""
Receipt Printer Abstract Base Class

Both MockPrinterService and EscposPrinterService implement this
interface, so the cashier endpoints print the same way whether a
thermal printer is attached or not.

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class PrintResult:
    """
    Standardized result from a print job.

    Attributes:
        success: Whether the receipt reached the printer
        order_id: Order the receipt belongs to
        destination: Where the receipt went (file path or printer address)
        error_message: Error description if printing failed
    """
    success: bool
    order_id: str
    destination: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "order_id": self.order_id,
            "destination": self.destination,
            "error_message": self.error_message,
        }


class BasePrinterService(ABC):
    """Interface every receipt printer implementation provides."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the printer provider name (e.g. "mock", "escpos")."""
        pass

    @abstractmethod
    async def print_receipt(self, text: str, order_id: str) -> PrintResult:
        """
        Print a rendered receipt.

        Args:
            text: Fixed-width receipt text
            order_id: Order the receipt belongs to

        Returns:
            PrintResult: never raises for printer-side failures
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check whether the printer is reachable."""
        pass
