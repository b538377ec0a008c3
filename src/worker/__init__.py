"""External worker process invocation and status report parsing."""
