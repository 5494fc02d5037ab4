"""Application use cases for the wellness index."""
