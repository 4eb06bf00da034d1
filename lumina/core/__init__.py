"""
Core utilities — shared exceptions and cross-cutting concerns used by the
catalog adapter, ledger, analysis engine and API server.
"""
