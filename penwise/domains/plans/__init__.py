"""Plans domain: the static plan limits table."""
