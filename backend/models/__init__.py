# Importing the package registers every table on Base.metadata
from models.users import User, Role
from models.category import Category
from models.product import Product, ProductCategory
from models.cart import Cart, CartItem
from models.order import Order, OrderItem, OrderStatus, PaymentMethod
from models.log import Log
