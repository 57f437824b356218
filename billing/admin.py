"""
Django admin registrations for the billing models.

Ledger rows are shown read-only: they must only change through an
adjudication, which takes the row lock.
"""

from django.contrib import admin

from .models import AnnualCopayment, InvoiceRecord


@admin.register(AnnualCopayment)
class AnnualCopaymentAdmin(admin.ModelAdmin):
    list_display = ('patient_id', 'year', 'amount', 'updated_at')
    list_filter = ('year',)
    search_fields = ('patient_id',)
    readonly_fields = ('patient_id', 'year', 'amount', 'created_at', 'updated_at')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(InvoiceRecord)
class InvoiceRecordAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'patient_id', 'total_amount', 'copayment_amount', 'status', 'billing_date')
    list_filter = ('status', 'year')
    search_fields = ('invoice_number', 'patient_id', 'patient_name', 'policy_number')
    readonly_fields = ('order_summaries', 'extra', 'created_at')
