"""
Ledger - Source Package

A small multi-tenant financial ledger core: authenticated users record
income and expense transactions, administrators manage users and read
aggregate reports.

DESIGN PRINCIPLES:
1. Every role rule lives in one access policy
2. Validate completely before touching storage
3. Fail early, fail visibly: every outcome is a typed error
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledger Team"
