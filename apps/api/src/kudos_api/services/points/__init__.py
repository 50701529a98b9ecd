"""Point ledger services."""

from .ledger import PointHistoryPage, PointLedger

__all__ = ["PointHistoryPage", "PointLedger"]
