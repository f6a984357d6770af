"""DocGuard: multi-tenant document authorization and audit core."""

__version__ = "0.1.0"
