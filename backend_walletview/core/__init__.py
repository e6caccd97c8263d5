"""
Core utilities — error taxonomy and best-effort call results.

Shared by the chain reader, analytics services and API server.
"""
