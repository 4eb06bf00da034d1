"""
API server package — HTTP/REST interface.

Exposes artist signals, supporter profiles, community snapshots, discovery
rails and the leaderboard, and accepts reward activities into the ledger.
Delegates to the catalog adapter, ledger and analysis engine.
"""
