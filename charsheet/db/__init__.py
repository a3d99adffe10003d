"""Database engine and ORM models."""
