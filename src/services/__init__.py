"""
Service functions for the forwarder.

This package contains the raw message splitter and header rewrites, and thin
wrappers around the S3 and SES clients.
"""

__all__ = ['email', 'headers', 's3', 'ses']
