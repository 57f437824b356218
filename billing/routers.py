"""
URL mappings for the billing API.

Paths keep the frontend convention of no trailing slash.
"""
from django.urls import path, include

from .views import health
from .views.billing import (
    calculate_billing,
    generate_invoice,
    invoice_history,
    invoice_statistics,
    annual_copayment,
    validate_insurance,
)

urlpatterns = [
    path('api/healthz', health.healthz, name='healthz'),
    path('metrics', include('django_prometheus.urls')),
    path('api/billing/calculate', calculate_billing, name='billing_calculate'),
    path('api/billing/invoice', generate_invoice, name='billing_invoice'),
    path('api/billing/history/<str:patient_id>', invoice_history, name='billing_history'),
    path('api/billing/statistics/<str:patient_id>', invoice_statistics, name='billing_statistics'),
    path('api/billing/copayment/<str:patient_id>/<int:year>', annual_copayment, name='billing_copayment'),
    path('api/billing/validate-insurance', validate_insurance, name='billing_validate_insurance'),
]
