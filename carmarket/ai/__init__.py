"""Vision model access."""
