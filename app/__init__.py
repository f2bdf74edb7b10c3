"""Activity verification and points ledger service."""
