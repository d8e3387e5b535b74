# bills/views/bill.py

"""
BILL API

Endpoints (all under /api/bills/, <kind> = sale | purchase | return):
- GET    /<kind>/                 paginated, filtered listing (cached)
- POST   /<kind>/                 create through BillingOrchestrator
- GET    /<kind>/stats/           per-kind totals (cached)
- GET    /<kind>/<id|number>/     bill with lines + vouchers (cached)
- DELETE /<kind>/<id|number>/     reverse movements + balances, then delete
- PUT    /<kind>/<id|number>/payment/   {paid_amount, payment_method}
- POST   /<kind>/<id|number>/voucher/   {amount?, payment_method?}

Views only validate shape and render; every write is one orchestrator call.
"""

import uuid

from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from bills.filters import BillFilter
from bills.models import Bill
from bills.serializers import (
    BillListSerializer,
    BillSerializer,
    PaymentUpdateSerializer,
    PaymentVoucherSerializer,
    PurchaseBillCreateSerializer,
    ReturnBillCreateSerializer,
    SaleBillCreateSerializer,
    VoucherCreateSerializer,
)
from bills.services import BillingOrchestrator
from bills.services.bill_queries import bill_stats
from bills.services.exceptions import BillNotFound
from caching import keys
from caching.router import get_invalidation_router
from common.exceptions import ValidationError
from common.responses import created_response, success_response

CREATE_SERIALIZERS = {
    Bill.Kind.SALE: SaleBillCreateSerializer,
    Bill.Kind.PURCHASE: PurchaseBillCreateSerializer,
    Bill.Kind.RETURN: ReturnBillCreateSerializer,
}

CREATED_MESSAGES = {
    Bill.Kind.SALE: "Sale bill created successfully",
    Bill.Kind.PURCHASE: "Purchase bill created successfully",
    Bill.Kind.RETURN: "Return bill created successfully",
}


def _cache():
    return get_invalidation_router().cache


def _full_bill(bill_id) -> Bill:
    return (
        Bill.objects.select_related("customer", "supplier")
        .prefetch_related("items__product", "vouchers")
        .get(id=bill_id)
    )


def find_bill(kind: str, ref) -> Bill:
    """Resolve <id|number> within one kind."""
    qs = Bill.objects.filter(kind=kind)
    try:
        bill = qs.filter(id=uuid.UUID(str(ref))).first()
    except ValueError:
        bill = qs.filter(number=str(ref)).first()
    if bill is None:
        raise BillNotFound(errors={"bill": str(ref), "kind": kind})
    return bill


def _query_date(request, name: str):
    raw = (request.query_params.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = parse_date(raw)
    except ValueError:
        value = None
    if value is None:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)", errors={name: ["invalid"]})
    return value


class BillCollectionView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BillListSerializer
    filterset_class = BillFilter

    def get_queryset(self):
        return (
            Bill.objects.filter(kind=self.kwargs["kind"])
            .select_related("customer", "supplier")
            .order_by("-invoice_date", "-created_at")
        )

    @extend_schema(
        tags=["Bills"],
        parameters=[
            OpenApiParameter(name="page", type=int, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="limit", type=int, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: BillListSerializer(many=True)},
    )
    def get(self, request, kind):
        params = {k: request.query_params.get(k) for k in sorted(request.query_params.keys())}

        def load():
            qs = self.filter_queryset(self.get_queryset())
            page = self.paginate_queryset(qs)
            return {
                "data": [dict(row) for row in BillListSerializer(page, many=True).data],
                "pagination": self.paginator.pagination_meta(),
            }

        cache = _cache()
        body = cache.get_or_set(keys.bills_list(kind, params), load, cache.ttl_for("bills"))
        return Response({"success": True, "message": "", **body})

    @extend_schema(
        tags=["Bills"],
        request=SaleBillCreateSerializer,
        responses={
            201: BillSerializer,
            400: OpenApiResponse(description="Validation failure"),
            404: OpenApiResponse(description="Counterparty, product, stock or bill not found"),
            409: OpenApiResponse(description="Insufficient stock, capacity, return quantity or funds"),
        },
        description="Body shape depends on <kind>: billData (sale/purchase) or returnData (return).",
    )
    def post(self, request, kind):
        serializer = CREATE_SERIALIZERS[kind](data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        orchestrator = BillingOrchestrator()
        common = {
            "items": v["items"],
            "money_box": v.get("moneyBoxId"),
            "create_voucher": v.get("createVoucher", False),
            "user": request.user,
        }
        if kind == Bill.Kind.SALE:
            bill = orchestrator.create_sale_bill(bill_data=v["billData"], **common)
        elif kind == Bill.Kind.PURCHASE:
            bill = orchestrator.create_purchase_bill(bill_data=v["billData"], **common)
        else:
            bill = orchestrator.create_return_bill(return_data=v["returnData"], **common)

        return created_response(BillSerializer(_full_bill(bill.id)).data, message=CREATED_MESSAGES[kind])


class BillStatsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Bills"],
        parameters=[
            OpenApiParameter(name="date_from", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date_to", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def get(self, request, kind):
        date_from = _query_date(request, "date_from")
        date_to = _query_date(request, "date_to")

        cache = _cache()
        data = cache.get_or_set(
            keys.bill_stats(kind, {"date_from": date_from, "date_to": date_to}),
            lambda: bill_stats(kind, date_from=date_from, date_to=date_to),
            cache.ttl_for("bills"),
        )
        return success_response(data)


class BillDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Bills"], responses={200: BillSerializer})
    def get(self, request, kind, ref):
        cache = _cache()
        data = cache.get_or_set(
            keys.bill_detail(f"{kind}:{ref}"),
            lambda: dict(BillSerializer(_full_bill(find_bill(kind, ref).id)).data),
            cache.ttl_for("bills"),
        )
        return success_response(data)

    @extend_schema(
        tags=["Bills"],
        responses={
            200: OpenApiResponse(description="Deleted; movements reversed"),
            400: OpenApiResponse(description="Bill has returns"),
        },
    )
    def delete(self, request, kind, ref):
        bill = find_bill(kind, ref)
        result = BillingOrchestrator().delete_bill(bill, user=request.user)
        return success_response(result, message="Bill deleted successfully")


class BillPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Bills"], request=PaymentUpdateSerializer, responses={200: BillSerializer})
    def put(self, request, kind, ref):
        bill = find_bill(kind, ref)
        serializer = PaymentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        bill = BillingOrchestrator().update_payment_status(
            bill,
            paid_amount=v["paid_amount"],
            payment_method=v.get("payment_method") or None,
            money_box=v.get("moneyBoxId"),
            create_voucher=v.get("createVoucher", False),
            user=request.user,
        )
        return success_response(BillSerializer(_full_bill(bill.id)).data, message="Payment updated successfully")

    patch = put


class BillVoucherView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Bills"], request=VoucherCreateSerializer, responses={201: PaymentVoucherSerializer})
    def post(self, request, kind, ref):
        bill = find_bill(kind, ref)
        serializer = VoucherCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        voucher = BillingOrchestrator().create_payment_voucher(
            bill,
            amount=serializer.validated_data.get("amount"),
            payment_method=serializer.validated_data.get("payment_method") or None,
            user=request.user,
        )
        return created_response(PaymentVoucherSerializer(voucher).data, message="Payment voucher created")
