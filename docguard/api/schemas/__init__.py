"""API schemas for DocGuard."""
