from tracker.services import DashboardService, FinanceTracker
from tracker.storage import JsonFileStorage, MemoryStorage

__all__ = ["FinanceTracker", "DashboardService", "JsonFileStorage", "MemoryStorage"]
