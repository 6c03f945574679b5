"""Vision model providers."""
