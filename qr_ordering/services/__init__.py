"""
                        Services Module

Business logic used by the routers, Celery tasks and scripts.
Services with external hardware or infrastructure have a mock
(development) and a real (staging/production) implementation.

Services:
    - storage: carts and login sessions (memory / Redis)
    - printer: receipt printing (file / ESC/POS network printer)
    - cart, orders, shifts, auth: the ordering workflow
    - catalog, uploads: admin-managed restaurants, menus and cashiers
    - reports, excel_manager: sales aggregation and spreadsheet exports
    - receipt, qr: receipt text and order QR codes
"""

from qr_ordering.services.excel_manager import ExcelManager

__all__ = ["ExcelManager"]
