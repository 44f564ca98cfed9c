"""Application layer: use cases orchestrating domain operations."""
