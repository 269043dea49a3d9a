"""
Domain layer for email forwarding business logic.

This layer contains:
- Data models and configuration (immutable settings, request/result types)
- Recipient resolution
- The forwarding pipeline and its error types
"""
