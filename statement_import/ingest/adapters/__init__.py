"""Issuer-specific statement adapters (PDF token streams and CSV exports)."""
