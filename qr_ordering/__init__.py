"""
                QR Restaurant Ordering

Backend for table-side QR ordering: customers order from their phone,
cashiers scan the order QR code and take payment, admins manage
restaurants, menus, cashiers and sales reports.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
