"""Core domain logic for DocGuard."""
