"""
API route modules for the tracker.

This package contains subrouters for:
- Users: user CRUD and the work items assigned to a user
- Tags: tag CRUD
- Work Items: work item CRUD, filtered listings and state-dependent deletion

Routers are included from kanban_api.api.main (under the /api/v1 prefix).
"""
