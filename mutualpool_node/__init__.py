"""
Mutual Pool Node package initializer

Keep this module lightweight. Do not import the API or runtime modules here,
so importing the ledger core does not require FastAPI.
"""

__all__ = []
