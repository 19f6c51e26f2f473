"""
Celery Tasks
Background tasks run after a cashier finalizes an order.
"""

import logging
import time
from datetime import datetime, timezone

from qr_ordering.celery_worker import celery_app
from qr_ordering.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def export_sale_to_excel(self, sale_data: dict) -> dict:
    """
    Append a finalized sale to the Excel sales ledger.

    Args:
        sale_data: Sales log fields plus order details (see sale_payload)

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = sale_data.get('order_id', 'unknown')

    logger.info(f"📋 Task {task_id}: Exporting sale for order {order_id}")
    start_time = time.time()

    try:
        result = ExcelManager.export_sale(sale_data)

        elapsed = round(time.time() - start_time, 3)
        result['task_id'] = task_id
        result['processing_time_seconds'] = elapsed

        if result['success']:
            logger.info(f"✅ Task {task_id}: Order {order_id} exported in {elapsed}s")
        else:
            logger.warning(f"⚠️ Task {task_id}: Order {order_id} failed - {result['message']}")

        return result

    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        logger.error(f"❌ Task {task_id}: Order {order_id} error after {elapsed}s - {e}")

        # Celery will auto-retry based on configuration
        raise


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now(timezone.utc).isoformat()
    }


@celery_app.task
def clear_sales_ledger() -> dict:
    """
    Clear the sales ledger (for testing/reset purposes).
    """
    success = ExcelManager.clear_all()
    return {
        'success': success,
        'message': 'Sales ledger cleared' if success else 'Failed to clear sales ledger',
        'timestamp': datetime.now(timezone.utc).isoformat()
    }
