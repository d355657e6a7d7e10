"""Storage infrastructure: engine, sessions and repositories."""
