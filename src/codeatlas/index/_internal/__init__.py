"""Internal implementation of the repository index."""
