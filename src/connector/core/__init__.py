"""Core plumbing shared by schema discovery and record operations.

Provides the error taxonomy, the authenticated Twenty transport, structlog
configuration and prometheus metrics.
"""
