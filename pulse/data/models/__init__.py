#import all models so SQLAlchemy registers them in Base.metadata

from pulse.data.models.band import BandModel
from pulse.data.models.watch import WatchModel
from pulse.data.models.user import UserModel
from pulse.data.models.cart import CartModel
from pulse.data.models.cart_item import CartItemModel
from pulse.data.models.order import OrderModel
from pulse.data.models.order_item import OrderItemModel
from pulse.data.models.contact import ContactSubmissionModel, NewsletterSubscriberModel

__all__ = [
    "BandModel",
    "WatchModel",
    "UserModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "ContactSubmissionModel",
    "NewsletterSubscriberModel",
]
