"""Persistence layer: database models, repositories and the unit of work."""
