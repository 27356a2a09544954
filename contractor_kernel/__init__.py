"""
Contractor Kernel - rate resolution and cost tracking core.

- Explicit pay/bill rate cards resolved once, at entry creation
- Write-once financial fields on every ledger entry
- Decimal money with a single rounding rule
- Template-driven shift vocabulary shared across rate cards
"""

__version__ = "0.1.0"
