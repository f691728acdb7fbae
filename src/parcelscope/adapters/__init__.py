"""Infrastructure adapters: HTTP providers and the SQLAlchemy queue store."""
