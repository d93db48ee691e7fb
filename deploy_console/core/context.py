# deploy_console/core/context.py

import contextvars

correlation_id_ctx = contextvars.ContextVar("correlation_id", default=None)
operator_ctx = contextvars.ContextVar("operator", default=None)
