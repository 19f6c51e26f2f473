"""
Sales Ledger Verification Script

Verifies data integrity of the Excel sales ledger written by the Celery
worker.
Run from project root: python scripts/verify.py

Version: 1.0.0
"""

import os
import sys
from datetime import datetime

import pandas as pd

from qr_ordering.core.config import get_settings

settings = get_settings()
EXCEL_FILE = os.path.join(settings.data_directory, settings.sales_ledger_filename)


def verify_excel() -> bool:
    """Verify the ledger after a simulation."""

    print("=" * 60)
    print("🔍 SALES LEDGER VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {EXCEL_FILE}")
    print("=" * 60)

    # Check if file exists
    if not os.path.exists(EXCEL_FILE):
        print("\n❌ Ledger file not found!")
        print("   Run the simulation first: python scripts/simulate.py")
        return False

    # Load Excel file
    try:
        df = pd.read_excel(EXCEL_FILE, engine='openpyxl')
        print(f"\n✅ File loaded successfully!")
    except Exception as e:
        print(f"\n❌ Could not read ledger file: {e}")
        return False

    # Statistics
    print(f"\n📊 STATISTICS:")
    print(f"   Total Sales: {len(df)}")
    print(f"   Columns: {len(df.columns)}")

    ok = True

    # Check required columns
    required = ['order_id', 'cashier', 'total_price', 'payment_method']
    missing = [col for col in required if col not in df.columns]

    if missing:
        print(f"\n⚠️ Missing Columns: {missing}")
        ok = False
    else:
        print(f"\n✅ All required columns present")

    # Check duplicates
    if 'order_id' in df.columns:
        duplicates = df['order_id'].duplicated().sum()
        if duplicates > 0:
            print(f"\n⚠️ {duplicates} orders were recorded more than once!")
            ok = False
        else:
            print(f"✅ Every order recorded once")

    # Revenue
    if 'total_price' in df.columns and len(df) > 0:
        total = df['total_price'].sum()
        avg = df['total_price'].mean()
        print(f"\n💰 REVENUE:")
        print(f"   Total: {settings.currency_prefix} {total:,.0f}".replace(",", "."))
        print(f"   Average: {settings.currency_prefix} {avg:,.0f}".replace(",", "."))

    # Per cashier
    if 'cashier' in df.columns and len(df) > 0:
        print(f"\n🧑‍💼 PER CASHIER:")
        for cashier, count in df['cashier'].value_counts().items():
            print(f"   {cashier}: {count}")

    # Sample data
    print(f"\n📋 RECENT SALES:")
    print("-" * 60)
    if len(df) > 0:
        cols = [c for c in ['order_id', 'cashier', 'total_price', 'payment_method'] if c in df.columns]
        print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FAILED")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    sys.exit(0 if verify_excel() else 1)
