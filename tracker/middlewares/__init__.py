"""HTTP middlewares wired into the app in ``tracker/__init__.py``."""

from .request_log import RequestLogMiddleware, principal_var, request_id_var
from .security_headers import SecurityHeadersMiddleware

__all__ = ["RequestLogMiddleware", "SecurityHeadersMiddleware", "principal_var", "request_id_var"]
