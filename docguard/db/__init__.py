"""Database layer for DocGuard."""
