# stockledger/routers/__init__.py

from .inventory.stock_router import router as stock_router
from .inventory.receipt_router import router as receipt_router


__all__ = [
"stock_router",
"receipt_router",
]
