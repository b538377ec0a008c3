"""Job descriptor schema, persistence and on-disk layout."""
