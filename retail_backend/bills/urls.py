# bills/urls.py

"""
Mounted at /api/bills/. <kind> is sale | purchase | return; <ref> is a bill
id or its number.
"""

from django.urls import re_path

from bills.views import (
    BillCollectionView,
    BillDetailView,
    BillPaymentView,
    BillStatsView,
    BillVoucherView,
)

KIND = r"(?P<kind>sale|purchase|return)"
REF = r"(?P<ref>[^/]+)"

urlpatterns = [
    re_path(rf"^{KIND}/$", BillCollectionView.as_view(), name="bills"),
    re_path(rf"^{KIND}/stats/$", BillStatsView.as_view(), name="bill-stats"),
    re_path(rf"^{KIND}/{REF}/payment/$", BillPaymentView.as_view(), name="bill-payment"),
    re_path(rf"^{KIND}/{REF}/voucher/$", BillVoucherView.as_view(), name="bill-voucher"),
    re_path(rf"^{KIND}/{REF}/$", BillDetailView.as_view(), name="bill-detail"),
]
