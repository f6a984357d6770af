"""DocGuard HTTP API."""
