"""Service entities."""
