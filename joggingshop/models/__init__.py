from joggingshop.models.category import Category
from joggingshop.models.product import Product
from joggingshop.models.order import Order
from joggingshop.models.order_item import OrderItem
from joggingshop.models.order_event import OrderEvent
from joggingshop.models.event import Event
from joggingshop.models.registration import Registration
from joggingshop.models.processed_transaction import ProcessedTransaction

# add ALL models here
