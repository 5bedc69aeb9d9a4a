"""
Kitchen Kernel

Pure domain core for production fulfillment and price reconciliation:
- Typed, coded exceptions
- Structured JSON logging with request context
- Immutable line item records and status vocabularies
- Decimal-only quantity and amount handling
"""

__version__ = "0.1.0"
