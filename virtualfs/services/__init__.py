"""Cache services: metadata store, reconciliation, tombstones, listings."""
