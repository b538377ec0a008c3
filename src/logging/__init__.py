"""Logger factory, formatters and contextual logging."""
