"""
Test suite for the ledger core

Contains:
- tests/unit/          : Unit tests for money, aggregates, workflow and handlers
"""
