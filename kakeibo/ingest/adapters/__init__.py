"""Per-provider header adapters."""
