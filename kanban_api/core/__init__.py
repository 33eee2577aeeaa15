"""
Core application utilities.

This package provides:
- Result codes, work item states and the deletion policy (lifecycle)
- Exception types for store failures
- Application-level settings (separate from DB settings) and logging setup
- FastAPI dependency helpers (session-scoped repositories)
"""
