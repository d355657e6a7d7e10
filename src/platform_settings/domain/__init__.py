"""Domain contracts for the settings store."""
