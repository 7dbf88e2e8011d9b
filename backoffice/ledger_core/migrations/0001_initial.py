import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
import ledger_core.managers
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        # BusinessUnit first, its owner FK is added once User exists
        migrations.CreateModel(
            name="BusinessUnit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("default_business_unit", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="default_users", to="ledger_core.businessunit")),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
                "indexes": [models.Index(fields=["default_business_unit"], name="user_default_bu_idx")],
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.AddField(
            model_name="businessunit",
            name="owner",
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="owned_business_units", to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name="Membership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("owner", "Owner"), ("admin", "Admin"), ("accountant", "Accountant"), ("viewer", "Viewer")], default="viewer", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="ledger_core.businessunit")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["business_unit", "user"], name="membership_bu_user_idx")],
                "constraints": [models.UniqueConstraint(fields=("user", "business_unit"), name="uq_user_business_unit_membership")],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="GlAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32)),
                ("name", models.CharField(max_length=200)),
                ("account_type", models.CharField(choices=[("ASSET", "Asset"), ("LIABILITY", "Liability"), ("EQUITY", "Equity"), ("REVENUE", "Revenue"), ("EXPENSE", "Expense")], max_length=10)),
                ("is_control_account", models.BooleanField(default=False)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="gl_accounts", to="ledger_core.businessunit")),
            ],
            options={
                "ordering": ("business_unit", "code"),
                "indexes": [models.Index(fields=["business_unit", "account_type"], name="glaccount_bu_type_idx")],
                "constraints": [models.UniqueConstraint(fields=("business_unit", "code"), name="uq_business_unit_account_code")],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="AccountingPeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=50)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("CLOSED", "Closed")], default="OPEN", max_length=6)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="accounting_periods", to="ledger_core.businessunit")),
                ("closed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="closed_periods", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("business_unit", "start_date"),
                "indexes": [
                    models.Index(fields=["business_unit", "start_date"], name="period_bu_start_idx"),
                    models.Index(fields=["business_unit", "status"], name="period_bu_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("business_unit", "name"), name="uq_business_unit_period_name"),
                    models.CheckConstraint(condition=models.Q(("start_date__lt", models.F("end_date"))), name="period_start_before_end"),
                ],
            },
            managers=[
                ("objects", ledger_core.managers.PeriodManager()),
            ],
        ),
        migrations.CreateModel(
            name="NumberingSeries",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("document_type", models.CharField(choices=[("JOURNAL_ENTRY", "Journal entry"), ("AR_INVOICE", "A/R invoice"), ("AP_INVOICE", "A/P invoice"), ("INCOMING_PAYMENT", "Incoming payment"), ("OUTGOING_PAYMENT", "Outgoing payment")], max_length=20)),
                ("prefix", models.CharField(blank=True, default="", max_length=16)),
                ("next_number", models.PositiveIntegerField(default=1)),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="numbering_series", to="ledger_core.businessunit")),
            ],
            options={
                "verbose_name_plural": "numbering series",
                "constraints": [
                    models.UniqueConstraint(fields=("business_unit", "document_type"), name="uq_business_unit_document_type_series"),
                    models.CheckConstraint(condition=models.Q(("next_number__gte", 1)), name="series_next_number_positive"),
                ],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("doc_num", models.CharField(max_length=40)),
                ("posting_date", models.DateField()),
                ("remarks", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("posted", "Posted")], default="draft", max_length=10)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("source_type", models.CharField(blank=True, max_length=50, null=True)),
                ("source_id", models.BigIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("accounting_period", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="journal_entries", to="ledger_core.accountingperiod")),
                ("approver", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_entries", to=settings.AUTH_USER_MODEL)),
                ("author", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="authored_entries", to=settings.AUTH_USER_MODEL)),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="journal_entries", to="ledger_core.businessunit")),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "ordering": ("-posting_date", "-id"),
                "indexes": [
                    models.Index(fields=["business_unit", "posting_date"], name="je_bu_date_idx"),
                    models.Index(fields=["business_unit", "status"], name="je_bu_status_idx"),
                    models.Index(fields=["source_type", "source_id"], name="je_source_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("business_unit", "doc_num"), name="uq_business_unit_doc_num")],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="JournalEntryLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveSmallIntegerField(default=1)),
                ("description", models.CharField(blank=True, max_length=400, null=True)),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journal_lines", to="ledger_core.glaccount")),
                ("entry", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.journalentry")),
            ],
            options={
                "ordering": ("entry", "line_no"),
                "indexes": [models.Index(fields=["account", "entry"], name="jel_account_entry_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="jel_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ArInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("doc_num", models.CharField(max_length=40)),
                ("bp_code", models.CharField(max_length=40)),
                ("posting_date", models.DateField()),
                ("due_date", models.DateField(blank=True, null=True)),
                ("remarks", models.TextField(blank=True, null=True)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.businessunit")),
                ("journal_entry", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="arinvoice", to="ledger_core.journalentry")),
            ],
            options={
                "verbose_name": "A/R invoice",
                "ordering": ("-posting_date", "-id"),
                "abstract": False,
                "constraints": [
                    models.UniqueConstraint(fields=("business_unit", "doc_num"), name="uq_ar_invoice_doc_num"),
                    models.CheckConstraint(condition=models.Q(("amount_paid__lte", models.F("total_amount"))), name="ar_invoice_paid_within_total"),
                ],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="ArInvoiceLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, max_length=400, null=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.glaccount")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.arinvoice")),
            ],
            options={
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="ar_line_positive_amount")],
            },
        ),
        migrations.CreateModel(
            name="ApInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("doc_num", models.CharField(max_length=40)),
                ("bp_code", models.CharField(max_length=40)),
                ("posting_date", models.DateField()),
                ("due_date", models.DateField(blank=True, null=True)),
                ("remarks", models.TextField(blank=True, null=True)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.businessunit")),
                ("journal_entry", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="apinvoice", to="ledger_core.journalentry")),
            ],
            options={
                "verbose_name": "A/P invoice",
                "ordering": ("-posting_date", "-id"),
                "abstract": False,
                "constraints": [
                    models.UniqueConstraint(fields=("business_unit", "doc_num"), name="uq_ap_invoice_doc_num"),
                    models.CheckConstraint(condition=models.Q(("amount_paid__lte", models.F("total_amount"))), name="ap_invoice_paid_within_total"),
                ],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="ApInvoiceLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, max_length=400, null=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.glaccount")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.apinvoice")),
            ],
            options={
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="ap_line_positive_amount")],
            },
        ),
        migrations.CreateModel(
            name="BankAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("account_number", models.CharField(blank=True, max_length=50, null=True)),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bank_accounts", to="ledger_core.businessunit")),
                ("gl_account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="bank_accounts", to="ledger_core.glaccount")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("business_unit", "name"), name="uq_business_unit_bankaccount_name")],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="IncomingPayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("doc_num", models.CharField(max_length=40)),
                ("bp_code", models.CharField(max_length=40)),
                ("payment_date", models.DateField()),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("is_reconciled", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("ar_invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="ledger_core.arinvoice")),
                ("bank_account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.bankaccount")),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.businessunit")),
                ("journal_entry", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="incomingpayment", to="ledger_core.journalentry")),
            ],
            options={
                "ordering": ("-payment_date", "-id"),
                "abstract": False,
                "indexes": [
                    models.Index(fields=["business_unit", "payment_date"], name="inpay_bu_date_idx"),
                    models.Index(fields=["business_unit", "is_reconciled"], name="inpay_bu_reconciled_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("business_unit", "doc_num"), name="uq_incoming_payment_doc_num")],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="OutgoingPayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("doc_num", models.CharField(max_length=40)),
                ("bp_code", models.CharField(max_length=40)),
                ("payment_date", models.DateField()),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("is_reconciled", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("ap_invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="ledger_core.apinvoice")),
                ("bank_account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.bankaccount")),
                ("business_unit", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.businessunit")),
                ("journal_entry", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="outgoingpayment", to="ledger_core.journalentry")),
            ],
            options={
                "ordering": ("-payment_date", "-id"),
                "abstract": False,
                "indexes": [
                    models.Index(fields=["business_unit", "payment_date"], name="outpay_bu_date_idx"),
                    models.Index(fields=["business_unit", "is_reconciled"], name="outpay_bu_reconciled_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("business_unit", "doc_num"), name="uq_outgoing_payment_doc_num")],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("business_unit", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="audit_logs", to="ledger_core.businessunit")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "indexes": [
                    models.Index(fields=["business_unit", "created_at"], name="auditlog_bu_created_idx"),
                    models.Index(fields=["object_type", "object_id"], name="auditlog_object_idx"),
                ],
            },
            managers=[
                ("objects", ledger_core.managers.TenantManager()),
            ],
        ),
    ]

