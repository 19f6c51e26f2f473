"""
Excel File Manager with Concurrency Control

Process-safe spreadsheet operations for:
- The sales ledger (one row appended per finalized sale, from Celery)
- In-memory workbooks and CSV files for the admin export endpoints

Version: 1.0.0
"""

import logging
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from filelock import FileLock, Timeout
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from qr_ordering.core.config import get_settings

logger = logging.getLogger(__name__)


class ExcelManager:
    """Process-safe Excel file manager."""

    SALES_COLUMNS = [
        "sale_id",
        "order_id",
        "date_time",
        "restaurant",
        "table_number",
        "cashier",
        "items",
        "total_price",
        "payment_method",
        "exported_at",
    ]

    # =========================================================================
    # PATHS
    # =========================================================================

    @classmethod
    def data_dir(cls) -> Path:
        return Path(get_settings().data_directory)

    @classmethod
    def sales_file(cls) -> Path:
        return cls.data_dir() / get_settings().sales_ledger_filename

    @classmethod
    def sales_lock(cls) -> Path:
        file = cls.sales_file()
        return file.with_name(file.name + ".lock")

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        data_dir = cls.data_dir()
        if not data_dir.exists():
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {data_dir}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path, columns: list) -> pd.DataFrame:
        """Load existing file or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
                return pd.DataFrame(columns=columns)
        return pd.DataFrame(columns=columns)

    # =========================================================================
    # SALES LEDGER
    # =========================================================================

    @classmethod
    def export_sale(cls, sale_data: dict[str, Any]) -> dict[str, Any]:
        """Append one finalized sale to the ledger under the file lock."""
        cls._ensure_data_dir()

        order_id = sale_data.get("order_id", "unknown")
        lock_timeout = get_settings().excel_lock_timeout
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }

        try:
            lock = FileLock(str(cls.sales_lock()), timeout=lock_timeout)

            with lock:
                logger.debug(f"Lock acquired for order {order_id}")

                df = cls._load_or_create_df(cls.sales_file(), cls.SALES_COLUMNS)

                export_time = datetime.now(timezone.utc).isoformat()
                new_row = {
                    "sale_id": sale_data.get("sale_id"),
                    "order_id": order_id,
                    "date_time": sale_data.get("created_at", export_time),
                    "restaurant": sale_data.get("restaurant"),
                    "table_number": sale_data.get("table_number"),
                    "cashier": sale_data.get("cashier"),
                    "items": sale_data.get("items"),
                    "total_price": sale_data.get("total_price"),
                    "payment_method": sale_data.get("payment_method", "cash"),
                    "exported_at": export_time,
                }

                new_df = pd.DataFrame([new_row], columns=cls.SALES_COLUMNS)
                df = new_df if df.empty else pd.concat([df, new_df], ignore_index=True)
                df.to_excel(str(cls.sales_file()), index=False, engine="openpyxl")

                logger.info(f"Sale for order {order_id} exported to Excel")

                result["success"] = True
                result["message"] = f"Order {order_id} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for order {order_id}")

        except Timeout:
            result["message"] = f"Lock timeout ({lock_timeout}s)"
            logger.error(f"Lock timeout for order {order_id}")

        except Exception as e:
            result["message"] = str(e)
            logger.exception(f"Error exporting order {order_id}")

        return result

    @classmethod
    def get_all_sales(cls) -> list[dict[str, Any]]:
        """Get all ledger rows."""
        cls._ensure_data_dir()

        if not cls.sales_file().exists():
            return []

        try:
            df = pd.read_excel(cls.sales_file(), engine="openpyxl")
            return df.to_dict("records")
        except Exception as e:
            logger.error(f"Error reading sales ledger: {e}")
            return []

    @classmethod
    def clear_all(cls) -> bool:
        """Delete the ledger and its lock file."""
        try:
            for f in [cls.sales_file(), cls.sales_lock()]:
                if f.exists():
                    f.unlink()
            logger.info("Sales ledger cleared")
            return True
        except OSError as e:
            logger.error(f"Error clearing sales ledger: {e}")
            return False

    # =========================================================================
    # DOWNLOADS
    # =========================================================================

    @staticmethod
    def build_workbook(
        rows: list[dict[str, Any]],
        columns: list[str],
        sheet_name: str = "Sheet1",
        headers: Optional[dict[str, str]] = None,
    ) -> bytes:
        """
        Build an .xlsx file in memory.

        Header cells are bold and every column is widened to its longest
        value.
        """
        df = pd.DataFrame(rows, columns=columns)
        if headers:
            df = df.rename(columns=headers)

        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=sheet_name)
            sheet = writer.sheets[sheet_name]

            for cell in sheet[1]:
                cell.font = Font(bold=True)

            for index, column in enumerate(df.columns, start=1):
                values = [str(column)] + [str(v) for v in df[column].tolist() if v is not None]
                width = max(len(v) for v in values) + 2
                sheet.column_dimensions[get_column_letter(index)].width = min(width, 60)

        return buffer.getvalue()

    @staticmethod
    def build_csv(
        rows: list[dict[str, Any]],
        columns: list[str],
        headers: Optional[dict[str, str]] = None,
    ) -> str:
        df = pd.DataFrame(rows, columns=columns)
        if headers:
            df = df.rename(columns=headers)
        return df.to_csv(index=False)
