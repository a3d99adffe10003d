"""Character sheet rules service."""
