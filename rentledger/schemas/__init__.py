"""Pydantic schemas for the ledger API."""
