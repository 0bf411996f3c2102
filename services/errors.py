"""
Errors raised by services and view decorators.

Each carries an HTTP status, a stable error code and a human message;
api.errors turns them into the uniform error envelope.
"""
from __future__ import annotations


class ServiceError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"
    default_message = "Error interno del servidor"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class BadRequest(ServiceError):
    status_code = 400
    error = "BAD_REQUEST"
    default_message = "Solicitud inválida"


class Unauthorized(ServiceError):
    status_code = 401
    error = "UNAUTHORIZED"
    default_message = "Acceso no autorizado"


class Forbidden(ServiceError):
    status_code = 403
    error = "FORBIDDEN"
    default_message = "No tienes permiso para esta acción"


class Conflict(ServiceError):
    status_code = 409
    error = "CONFLICT"
    default_message = "Conflicto con el estado actual del recurso"


class NotFound(ServiceError):
    status_code = 404
    error = "NOT_FOUND"
    default_message = "Recurso no encontrado"
