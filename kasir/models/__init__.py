"""Models package - exports all SQLAlchemy models."""
# Accounts
from kasir.models.app_user import AppUser, PROFILE_FIELDS

# Catalog
from kasir.models.category import Category
from kasir.models.brand import Brand
from kasir.models.product import Product, split_barcodes
from kasir.models.stock_history import StockHistory, StockChangeType

# Sales
from kasir.models.sale import Sale, PaymentMethod, normalize_payment_method
from kasir.models.sale_item import SaleItem

# Finance
from kasir.models.payment_channel import PaymentChannel, ChannelType
from kasir.models.finance_transaction import FinanceTransaction, FinanceTransactionType, FinanceReferenceType

# Settings
from kasir.models.invoice_settings import InvoiceSettings, INVOICE_SETTINGS_DEFAULTS
from kasir.models.custom_invoice import CustomInvoice, PAPER_SIZES

# Public storefront
from kasir.models.public_brand import PublicBrand
from kasir.models.public_category import PublicCategory
from kasir.models.public_product import PublicProduct

__all__ = [
    'AppUser', 'PROFILE_FIELDS',
    'Category', 'Brand', 'Product', 'split_barcodes', 'StockHistory', 'StockChangeType',
    'Sale', 'PaymentMethod', 'normalize_payment_method', 'SaleItem',
    'PaymentChannel', 'ChannelType',
    'FinanceTransaction', 'FinanceTransactionType', 'FinanceReferenceType',
    'InvoiceSettings', 'INVOICE_SETTINGS_DEFAULTS', 'CustomInvoice', 'PAPER_SIZES',
    'PublicBrand', 'PublicCategory', 'PublicProduct',
]
