from .accounts import create_account, delete_account, get_account
from .balances import (BalanceDrift, apply_line_effects, balance_delta,
                       expected_balance, reconcile_balances)
from .closing import CloseResult, PeriodValidation, close_period, validate_period
from .documents import (InvoiceItem, delete_document, payable_account,
                        post_ap_invoice, post_ar_invoice,
                        post_incoming_payment, post_outgoing_payment,
                        receivable_account, reconcile_payment)
from .numbering import next_doc_number
from .periods import (create_period, delete_period, find_period_containing,
                      resolve_active_period, update_period)
from .posting import (LineInput, delete_entry, draft_entry, get_entry,
                      list_entries, post_draft, post_entry, to_amount,
                      validate_lines)
from .reports import TrialBalanceRow, trial_balance
