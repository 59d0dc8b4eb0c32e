from .manager import PaymentSocketManager
from .router import router

__all__ = ["PaymentSocketManager", "router"]
