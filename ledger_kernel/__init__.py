"""
Ledger Kernel

The accounting core behind the ERP:
- Double-entry journal posting with balance validation
- Voiding via compensating reversal entries
- Trial balance and P&L derived from journal lines at query time
- Immutability of posted entries enforced at the ORM layer
- Tenant-scoped sequences and a hash-chained audit trail
"""

__version__ = "0.1.0"
