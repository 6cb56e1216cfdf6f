"""Users domain: the plan cache on the user row."""
