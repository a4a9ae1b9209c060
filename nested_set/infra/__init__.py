"""Infrastructure: database engine/session and logging."""
