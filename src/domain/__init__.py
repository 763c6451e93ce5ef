"""Domain models and calculations for the portfolio report.

This package contains in-memory (Pydantic) models describing accounts and
transactions, plus the valuation engine that derives the summary from them.
They are independent from the JSON store and the API client so that the
business logic can be tested without either.
"""

__all__ = [
    "ledger",
    "pricing",
    "valuation",
]
