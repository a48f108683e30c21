"""Persistence — plan file and audit ledger."""
