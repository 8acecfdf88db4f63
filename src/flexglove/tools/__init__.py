"""Developer helpers (debug switches and instrumentation)."""
