from .contact import Contact
from .product import Product, StockStatus, derive_stock_status
from .warehouse import Warehouse
