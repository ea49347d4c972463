"""Year-based statutory configuration for the calculation engine."""
