"""Infrastructure layer: persistence, services and external connectors."""
