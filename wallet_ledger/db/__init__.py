"""ORM models for the ledger schema."""
