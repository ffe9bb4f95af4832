"""Donation ledger, donor engagement scoring and LLM content helpers."""

__version__ = "0.1.0"
