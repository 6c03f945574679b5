"""Car listing domain."""
