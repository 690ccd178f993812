"""Event-triggered workers."""
