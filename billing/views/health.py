from django.db import DatabaseError
from django.http import JsonResponse

from ..models import AnnualCopayment
from ..policy import CopaymentPolicy


def healthz(request):
    """Liveness plus a read of the copayment ledger table."""
    policy = CopaymentPolicy.from_settings()
    try:
        AnnualCopayment.objects.exists()
    except DatabaseError as e:
        return JsonResponse({'ok': False, 'ledger': False, 'error': str(e)}, status=503)
    return JsonResponse({
        'ok': True,
        'ledger': True,
        'standardCopayment': str(policy.standard_copayment),
        'annualCap': str(policy.annual_cap),
    })
