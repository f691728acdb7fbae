"""Domain layer: models, ports, and resolution policies."""
