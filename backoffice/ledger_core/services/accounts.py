import logging
from django.db import IntegrityError, transaction
from ..exceptions import AccountInUse, DuplicateAccountCode, UnknownAccount
from ..models import AccountType, GlAccount, JournalEntryLine
from .audit_helper import log_action

logger = logging.getLogger(__name__)


# ----------------------------
# Chart of accounts
# ----------------------------
def create_account(business_unit, code, name, account_type, is_control_account=False, user=None):
    if account_type not in AccountType.values:
        raise UnknownAccount(f"Unknown account type '{account_type}'.")
    if GlAccount.objects.for_business_unit(business_unit).filter(code=code).exists():
        raise DuplicateAccountCode(f"Account code {code} already exists.")
    try:
        with transaction.atomic():
            account = GlAccount.objects.create(
                business_unit=business_unit,
                code=code,
                name=name,
                account_type=account_type,
                is_control_account=is_control_account,
            )
            log_action(action="create", instance=account, user=user,
                       changes={"code": code, "account_type": account_type})
    except IntegrityError:
        # lost a race against another create with the same code
        raise DuplicateAccountCode(f"Account code {code} already exists.")
    return account


def get_account(business_unit, code):
    try:
        return GlAccount.objects.for_business_unit(business_unit).get(code=code)
    except GlAccount.DoesNotExist:
        raise UnknownAccount(f"GL account {code} not found.")


def delete_account(account_id, user=None):
    """Accounts that appear on any journal line can never be deleted."""
    with transaction.atomic():
        account = GlAccount.objects.select_for_update().get(pk=account_id)
        if JournalEntryLine.objects.filter(account=account).exists():
            raise AccountInUse(
                f"Cannot delete account {account.code}: it has existing transactions."
            )
        log_action(action="delete", instance=account, user=user, changes={"code": account.code})
        account.delete()
    logger.info("Deleted GL account %s", account.code,
                extra={"business_unit_id": account.business_unit_id})
