"""Domain layer: ledger and store models, invariants and errors."""
