from decimal import Decimal

import bleach
from rest_framework import serializers

from billing.insurance import InsuranceCoverage, PolicyStatus
from billing.orders import OrderCategory, build_order_summary


class InsuranceSerializer(serializers.Serializer):
    companyName = serializers.CharField(max_length=255)
    policyNumber = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=[s.value for s in PolicyStatus])
    expirationDate = serializers.DateField()

    def to_coverage(self, data=None) -> InsuranceCoverage:
        data = data if data is not None else self.validated_data
        return InsuranceCoverage(
            company_name=data['companyName'].strip(),
            policy_number=data['policyNumber'].strip(),
            status=PolicyStatus(data['status']),
            expiration_date=data['expirationDate'],
        )


class OrderLineSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=[c.value for c in OrderCategory])
    itemName = serializers.CharField(max_length=255)
    unitCost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))
    quantity = serializers.IntegerField(min_value=1, default=1)
    dosage = serializers.CharField(required=False, allow_blank=True, max_length=128)


class OrderSerializer(serializers.Serializer):
    orderId = serializers.CharField(max_length=64)
    lines = OrderLineSerializer(many=True)


class BillingRequestSerializer(serializers.Serializer):
    patientId = serializers.CharField(max_length=32)
    patientName = serializers.CharField(required=False, allow_blank=True, max_length=255)
    insurance = InsuranceSerializer(required=False, allow_null=True)
    orders = OrderSerializer(many=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)

    def validate_patientId(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('patientId is required')
        return v

    def validate_patientName(self, v):
        return bleach.clean((v or '').strip(), tags=[], strip=True)

    def coverage(self):
        data = self.validated_data.get('insurance')
        return InsuranceSerializer().to_coverage(data) if data else None

    def order_summaries(self):
        # Category mixing is rejected here with PreconditionViolated.
        return [build_order_summary(o['orderId'], o['lines']) for o in self.validated_data['orders']]


class HistoryQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(required=False, min_value=1900, max_value=9999)
