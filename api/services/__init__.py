"""Service layer for business logic.

Services encapsulate the streak and achievement rules, keeping routes thin
and focused on HTTP handling.

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Database)

Services should:
- Contain all business rules and validation
- Orchestrate calls to repositories
- Raise domain exceptions (TaskNotFoundError, SessionNotInProgressError, ...)
  that the app maps to status codes

Services should NOT:
- Directly execute SQL queries (use repositories)
- Know about HTTP request/response details
- Commit; the request dependency or background wrapper owns the transaction
"""
