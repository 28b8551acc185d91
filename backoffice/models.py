# Import every model so string relationships resolve and create_all sees all tables
from backoffice.users.models import User  # noqa: F401
from backoffice.stock.products.models import Product  # noqa: F401
from backoffice.stock.transactions.models import StockTransaction  # noqa: F401
from backoffice.sales.models import Sale, SaleItem, DailySalesCounter  # noqa: F401
from backoffice.payments.models import Payment  # noqa: F401
from backoffice.returns.models import ReturnTransaction, ReturnItem  # noqa: F401
