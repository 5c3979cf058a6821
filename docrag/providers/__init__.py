"""Concrete adapters for the contracts in :mod:`docrag.interfaces`."""
