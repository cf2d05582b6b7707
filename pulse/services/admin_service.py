# pulse/services/admin_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from pulse.repos.band_repo import BandRepo
from pulse.repos.contact_repo import ContactRepo
from pulse.repos.order_repo import OrderRepo
from pulse.repos.user_repo import UserRepo
from pulse.repos.watch_repo import WatchRepo
from pulse.services.order_service import DELIVERED, order_summary

RECENT_LIMIT = 5


class AdminService:
    """Dashboard overview across the catalog, orders, users and subscribers."""

    def __init__(self, db: Session):
        self.bands = BandRepo(db)
        self.watches = WatchRepo(db)
        self.orders = OrderRepo(db)
        self.users = UserRepo(db)
        self.contacts = ContactRepo(db)

    def overview(self) -> Dict[str, Any]:
        revenue = Decimal("0.00")
        for status, _count, amount in self.orders.status_totals():
            if status == DELIVERED:
                revenue += Decimal(str(amount))

        return {
            "bands": self.bands.count_active(),
            "watches": self.watches.count_active(),
            "orders": self.orders.count_all(),
            "users": self.users.count_all(),
            "subscribers": self.contacts.count_subscribers(active_only=True),
            "revenue": revenue.quantize(Decimal("0.01")),
            "recent_orders": [order_summary(o) for o in self.orders.recent(RECENT_LIMIT)],
            "recent_contacts": list(self.contacts.list_submissions(RECENT_LIMIT, 0, unread_only=False)),
        }
