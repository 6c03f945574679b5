"""User domain."""
