from .account import DEBIT_NORMAL_TYPES, AccountType, GlAccount
from .auditlog import AuditLog
from .banking import BankAccount, IncomingPayment, OutgoingPayment
from .invoice import ApInvoice, ApInvoiceLine, ArInvoice, ArInvoiceLine
from .journal import EntryStatus, JournalEntry, JournalEntryLine
from .numbering import DocumentType, NumberingSeries
from .period import AccountingPeriod, PeriodStatus
from .tenancy import BusinessUnit, Membership, User
