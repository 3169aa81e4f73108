"""
Portfolio bounded context — domain layer.

This module contains all domain logic for the portfolio context:
- Trade validation
- Execution pricing and fees
- Position (average cost) accounting
- Cash balance accounting
- Ledger replay for audits
"""
