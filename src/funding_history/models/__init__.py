"""Pydantic domain models."""

from funding_history.models.funding import FundingRecord, ms_to_dt

__all__ = ["FundingRecord", "ms_to_dt"]
