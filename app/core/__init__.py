"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication, loans,
memberships, payments). No business logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Logger and transaction helpers for service classes
    - ServiceResult: Result wrapper for callers that must not raise

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes and http_status
    - ValidationError, NotFoundError, ConflictError, ExternalServiceError
    - application_exception_handler: DRF EXCEPTION_HANDLER

Views (import from core.views):
    - health_check: Liveness/readiness probe

Note:
    core is an installed app, so nothing is imported here. Re-exporting from
    this package would load its modules while Django populates the app
    registry. Import from the modules directly.
"""
