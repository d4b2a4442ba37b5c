"""FastAPI routers, one module per resource. Registered in ``api.app``."""
