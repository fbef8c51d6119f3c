"""Clients for external providers consumed by the store core."""
