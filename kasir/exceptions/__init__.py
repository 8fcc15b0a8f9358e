"""Custom exceptions for the Kasir POS application."""


def _fmt_qty(value):
    return f"{int(value)}" if value % 1 == 0 else f"{value:.2f}".rstrip('0').rstrip('.')


class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="Terjadi kesalahan internal", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(PosError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class ValidationError(BusinessLogicError):
    """Raised when request or service input is malformed."""
    def __init__(self, message, errors=None):
        payload = {'errors': errors} if errors else None
        super().__init__(message, 400, payload)


class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Data tidak ditemukan", payload=None):
        super().__init__(message, 404, payload)


class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_name, required, available):
        message = (
            f"Stok tidak cukup untuk {product_name}: "
            f"dibutuhkan {_fmt_qty(required)}, tersedia {_fmt_qty(available)}"
        )
        super().__init__(message, status_code=409, payload={
            'product_name': product_name,
            'required': required,
            'available': available,
        })


class AuthenticationError(PosError):
    """Raised when the request has no valid session."""
    def __init__(self, message="Silakan login terlebih dahulu"):
        super().__init__(message, 401)


class UnauthorizedError(PosError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Akses ditolak", payload=None):
        super().__init__(message, 403, payload)


class SaleItemDeleteForbiddenError(UnauthorizedError):
    """Raised when single-item deletion is disabled for multi-item sales."""
    reason = 'item_delete_forbidden'

    def __init__(self, sale_id):
        super().__init__(
            'Item tidak dapat dihapus satu per satu. Hapus seluruh transaksi.',
            payload={'reason': self.reason, 'fallback': 'delete_sale', 'sale_id': sale_id},
        )


class ServiceUnavailableError(PosError):
    """Raised when the backing database cannot be reached."""
    def __init__(self, message="Layanan tidak tersedia"):
        super().__init__(message, 503)
