"""Service layer for business logic.

Services encapsulate all business logic, keeping routes thin and focused
on HTTP handling. This separation provides:
- Clear business rules in one place
- Orchestration of multiple repositories
- One error contract for every operation (see services.errors)

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Database)

Services should:
- Validate input before any query runs
- Orchestrate calls to repositories
- Return Envelope / PaginatedEnvelope schemas
- Raise ValidationError for client mistakes, DatabaseError for the rest

Services should NOT:
- Directly execute SQL queries (use repositories)
- Know about HTTP request/response details
- Commit the session (the get_db dependency owns the transaction)
"""
