"""AuthGate - OAuth 2.0 authorization server with email sign-in codes.

Issues authorization codes, access and refresh tokens to registered
clients, signs users in with one-time email codes and runs the
dual-sided email change workflow.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
