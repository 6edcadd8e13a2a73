"""Durable PersistenceBackend adapters."""
