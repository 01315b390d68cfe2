"""
Pharmacy Kernel

Shared infrastructure for the pharmacy back-office costing engine:
- Structured JSON logging
- Typed exceptions with machine-readable codes
- Injectable clock and Decimal value helpers
- Read-only persistence boundary for inventory movements
"""

__version__ = "0.1.0"
