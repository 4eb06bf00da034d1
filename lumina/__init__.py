"""
Lumina — artist discovery and supporter reputation backend.

Ranks undervalued artists from the Audius trending catalog, scores each
wallet's supporter reputation from its reward ledger, and builds personalized
discovery rails. Modular layout: catalog adapter, interaction ledger,
analysis engine, API server.
"""

__version__ = "0.1.0"
