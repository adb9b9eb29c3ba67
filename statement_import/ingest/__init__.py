"""Statement ingestion: token streams, shared parser boundary and issuer adapters."""
