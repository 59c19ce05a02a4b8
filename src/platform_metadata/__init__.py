"""Component and resource metadata for distributed platforms."""
