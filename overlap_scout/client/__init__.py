# File: overlap_scout/client/__init__.py
"""overlap_scout.client: HTTP-клиент REST API аналитики."""

from .api_client import ApiClient, FetchOutcome, encode_base_url

__all__ = ["ApiClient", "FetchOutcome", "encode_base_url"]
