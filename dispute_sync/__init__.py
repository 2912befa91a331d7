"""
dispute_sync - Arbitration ledger / metadata store reconciliation

Keeps an off-ledger metadata store in step with an arbitration ledger:
an ordered write queue serializes read-modify-write operations, ledger
events are folded into store records by idempotent handlers, and dispute views are
merged from both sources on every read.

Source-of-truth split:
- The ledger owns dispute state, status, vote counters, sessions and periods
- The store owns timestamps, evidence, contact metadata, draws and net tokens
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
