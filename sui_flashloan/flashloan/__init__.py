"""Flash-loan example flows: borrow, act, repay inside one transaction."""

from .common import execute_transaction, explorer_url
from .navi import NaviFlashLoan
from .suilend import SuilendFlashLoan

__all__ = ["execute_transaction", "explorer_url", "NaviFlashLoan", "SuilendFlashLoan"]
