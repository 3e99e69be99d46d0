"""Core configuration and logging for AuthGate."""
