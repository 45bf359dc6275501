from .services import router as services_router

__all__ = ["services_router"]
