"""Domain modules of the payment and wallet ledger engine."""
