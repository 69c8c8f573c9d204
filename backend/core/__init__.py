"""Core infrastructure: logging, correlation IDs, Sentry and scheduling."""
