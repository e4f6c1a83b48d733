"""Market data ingestion exports."""

from market_analyzer.ingest.coinglass import CoinglassClient, fetch_market_data

__all__ = ["CoinglassClient", "fetch_market_data"]
