from django.utils.deprecation import MiddlewareMixin
from .models import BusinessUnit


class CurrentBusinessUnitMiddleware(MiddlewareMixin):
    # Run on every request and attach a .business_unit attribute
    # to the request, based on the logged-in user
    def process_request(self, request):
        request.business_unit = None
        if not request.user.is_authenticated:
            return

        # Default fallback: the user's default business unit
        business_unit = request.user.default_business_unit

        # If the user switched restaurants, the choice sits in the
        # session as "active_business_unit_id"
        business_unit_id = request.session.get("active_business_unit_id")
        if business_unit_id:
            business_unit = BusinessUnit.objects.filter(pk=business_unit_id).first()

        # the user must be an active member, whatever the source;
        # blocks tampered sessions "jumping" into another restaurant
        if business_unit is not None and not business_unit.memberships.filter(
            user=request.user, is_active=True
        ).exists():
            business_unit = None
        request.business_unit = business_unit
