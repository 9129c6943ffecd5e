"""Domain layer: pure document, access-control and scanning rules."""
