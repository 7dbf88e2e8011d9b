from django.db import models

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a business unit
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_business_unit(self, business_unit):
        return self.filter(business_unit=business_unit)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager):
    use_in_migrations = True

    def get_queryset(self):  # every model gets .for_business_unit()
        return TenantQuerySet(self.model, using=self._db)

    def for_business_unit(self, business_unit):
        return self.get_queryset().for_business_unit(business_unit)


class PeriodQuerySet(TenantQuerySet):
    def open(self):
        return self.filter(status="OPEN")

    def containing(self, business_unit, date):
        """Periods whose inclusive [start_date, end_date] range holds `date`."""
        return self.for_business_unit(business_unit).filter(
            start_date__lte=date, end_date__gte=date
        )

    def overlapping(self, business_unit, start_date, end_date):
        """Inclusive-endpoint overlap: existing.start <= end and existing.end >= start."""
        return self.for_business_unit(business_unit).filter(
            start_date__lte=end_date, end_date__gte=start_date
        )


class PeriodManager(TenantManager):
    def get_queryset(self):
        return PeriodQuerySet(self.model, using=self._db)

    def containing(self, business_unit, date):
        return self.get_queryset().containing(business_unit, date)

    def overlapping(self, business_unit, start_date, end_date):
        return self.get_queryset().overlapping(business_unit, start_date, end_date)
