from django.urls import path
from . import views

app_name = "ledger_core"

urlpatterns = [
    path("journal-entries/", views.journal_entry_list_view, name="journal-entry-list"),
    path(
        "journal-entries/<int:entry_id>/",
        views.journal_entry_detail_view,
        name="journal-entry-detail",
    ),
    path("periods/", views.period_list_view, name="period-list"),
    path("periods/<int:period_id>/", views.period_detail_view, name="period-detail"),
    path("periods/<int:period_id>/close/", views.period_close_view, name="period-close"),
    path("reports/trial-balance/", views.trial_balance_view, name="trial-balance"),
]
