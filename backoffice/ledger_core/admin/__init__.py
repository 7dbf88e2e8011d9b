from .account import GlAccountAdmin, NumberingSeriesAdmin
from .actions import close_periods, post_draft_entries, reconcile_payments
from .auditlog import AuditLogAdmin
from .documents import (ApInvoiceAdmin, ArInvoiceAdmin, BankAccountAdmin,
                        IncomingPaymentAdmin, OutgoingPaymentAdmin)
from .inlines import (ApInvoiceLineInline, ArInvoiceLineInline,
                      JournalEntryLineInline)
from .journal import JournalEntryAdmin
from .membership import BusinessUnitAdmin, MembershipAdmin, UserAdmin
from .mixins import TenantAdminMixin
from .period import AccountingPeriodAdmin
