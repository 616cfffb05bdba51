"""
Service-layer exceptions
All derive from ValueError; routers translate them into HTTP status codes.
"""


class ServiceError(ValueError):
    """A rejected operation (client error)"""
    status_code = 400


class NotFoundError(ServiceError):
    """A referenced entity does not exist"""
    status_code = 404


class ConflictError(ServiceError):
    """The operation collides with existing data (double booking, duplicate key)"""
    status_code = 409
