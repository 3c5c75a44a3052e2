"""Domain-level persistence contracts."""
