class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.business_unit (set by CurrentBusinessUnitMiddleware)
    or falls back to request.user.default_business_unit.
    """

    def _get_request_business_unit(self, request):
        business_unit = getattr(request, "business_unit", None)
        if business_unit is None:
            user = getattr(request, "user", None)
            business_unit = getattr(user, "default_business_unit", None)
        return business_unit

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # If superuser, show everything;
        # otherwise restrict to the business unit if available
        if request.user.is_superuser:
            return qs
        business_unit = self._get_request_business_unit(request)
        if business_unit is None:
            return qs.none()
        return qs.filter(business_unit=business_unit)

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """
        Restrict foreignkey dropdowns (accounts, bank accounts, invoices)
        to the current business unit.
        """
        if not request.user.is_superuser:
            business_unit = self._get_request_business_unit(request)
            rel_model = db_field.related_model
            if db_field.name == "business_unit":
                kwargs["queryset"] = rel_model.objects.filter(
                    pk=getattr(business_unit, "pk", None)
                )
            elif any(f.name == "business_unit" for f in rel_model._meta.get_fields()):
                if business_unit is not None:
                    kwargs["queryset"] = rel_model.objects.filter(business_unit=business_unit)
                else:
                    kwargs["queryset"] = rel_model.objects.none()
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Ensure object is always owned by the business unit (unless superuser)
        if not request.user.is_superuser:
            business_unit = self._get_request_business_unit(request)
            if business_unit is not None:
                obj.business_unit = business_unit
        super().save_model(request, obj, form, change)
