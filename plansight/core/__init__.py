"""Core building blocks: errors, logging, configuration, domain values and units."""
