"""HTTP routers, one per audience."""

from qr_ordering.routers.admin import router as admin_router
from qr_ordering.routers.cashier import router as cashier_router
from qr_ordering.routers.customer import router as customer_router

__all__ = ["admin_router", "cashier_router", "customer_router"]
