"""User account and session management service."""
