"""Persistence — the registry document and the operation history ledger."""
