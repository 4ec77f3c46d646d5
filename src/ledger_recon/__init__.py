"""Reconcile an internal transaction ledger against bank statements."""

__version__ = "0.1.0"
