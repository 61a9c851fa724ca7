"""Task utilities: database setup and per-thread sync context."""
