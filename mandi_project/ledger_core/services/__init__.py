from .allocation import Allocation, AllocationResult, allocate
from .consistency import (Discrepancy, check_party_consistency,
                          check_tenant_consistency, recompute_party_balance,
                          repair_tenant_balances)
from .notification import deliver_notification, enqueue_payment_notifications
from .outstanding import list_outstanding_invoices
from .party_ledger import RetailerLedger, VendorLedger, get_ledger
from .payment import (DistributionResult, record_invoice_payment,
                      record_payment, record_retailer_payment,
                      record_vendor_payment)
from .tenancy import TenantRef, assert_same_tenant, require_tenant
from .validation import PaymentRequest, validate_payment_request
