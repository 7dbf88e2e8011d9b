from typing import Optional
from ..models import AuditLog, BusinessUnit


def log_action(
    *,
    action: str,
    instance,
    user=None,
    business_unit: Optional[BusinessUnit] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Runs inside the caller's transaction, so a rolled back posting
    leaves no audit row behind.
    """

    if not business_unit:
        business_unit = getattr(instance, "business_unit", None)

    # anonymous users (e.g. admin actions in tests) are not stored
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    return AuditLog.objects.create(
        business_unit=business_unit,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
