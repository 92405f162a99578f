"""Infrastructure adapters: database, repositories and the change feed."""
