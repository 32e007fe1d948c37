"""
Core money model, domain aggregates, numeric primitives and invariants.

Everything here is independent of external systems (databases, message
buses, HTTP); those are reached through the ports in ``src.application``.
"""
