"""Server configuration, persistence, security and rate limiting."""
