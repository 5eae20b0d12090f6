from .auditlog import AuditLog
from .banking import BankAccount, BankbookEntry, CashbookEntry
from .invoice import PurchaseInvoice, SalesInvoice, derive_status
from .notification import NotificationOutbox
from .party import Retailer, Vendor
from .payment import Payment, SalesPayment
from .tenant import Tenant
