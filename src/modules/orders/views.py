"""Order API views.

Exposes ``FulfillmentService`` and ``CheckoutService`` via HTTP using DRF.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the views never swallow generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import IsManager
from modules.accounts.services import resolve_actor
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import CheckoutDTO, CheckoutLineDTO
from modules.orders.exceptions import (
    CustomizationNotFound,
    DesignerNotFound,
    InvalidTransition,
    OrderNotFound,
    OrderValidationError,
    PaymentAlreadyConfirmed,
    UnauthorizedTransition,
)
from modules.orders.factories import build_checkout_service, build_fulfillment_service
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AssignSerializer,
    CheckoutSerializer,
    DashboardSummarySerializer,
    OrderListSerializer,
    OrderSerializer,
    RejectSerializer,
    StatusUpdateSerializer,
    SubmitToManagerSerializer,
)

DOMAIN_ERRORS = (
    OrderNotFound,
    DesignerNotFound,
    CustomizationNotFound,
    InvalidTransition,
    UnauthorizedTransition,
    OrderValidationError,
    PaymentAlreadyConfirmed,
)


def domain_error_response(exc: Exception) -> Response:
    """Translate a domain exception into ``{"detail": ...}`` + status code."""
    if isinstance(exc, OrderNotFound):
        return Response(
            {"detail": "Order not found."},
            status=status.HTTP_404_NOT_FOUND,
        )
    if isinstance(exc, (DesignerNotFound, CustomizationNotFound)):
        return Response(
            {"detail": str(exc)},
            status=status.HTTP_404_NOT_FOUND,
        )
    if isinstance(exc, UnauthorizedTransition):
        return Response(
            {"detail": str(exc)},
            status=status.HTTP_403_FORBIDDEN,
        )
    return Response(
        {"detail": str(exc)},
        status=status.HTTP_400_BAD_REQUEST,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``FulfillmentService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all writes go through the
    service layer.  Listings are scoped to the caller's role.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    ordering_fields = ["order_date", "total_price", "status"]
    ordering = ["-order_date", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_fulfillment_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Listing and retrieval share the ``order_listing`` throttle scope."""
        self.throttle_scope = (
            "order_listing" if self.action in {"list", "retrieve"} else None
        )
        return super().get_throttles()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        actor = resolve_actor(self.request.user)
        return OrderDjangoRepository().queryset(self._service.visibility_filters(actor))

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, payment, designer, date range, total range) is
        handled by ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order_for(str(pk), resolve_actor(request.user))
        except OrderNotFound as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"], permission_classes=[IsManager])
    def summary(self, request: Request) -> Response:
        """GET /api/v1/orders/summary/: dashboard counts per status."""
        summary = self._service.dashboard_summary()
        return Response(DashboardSummarySerializer(summary.model_dump()).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Operator-chosen status change.  The status must be a known value and
        the transition is validated like any other.
        """
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        actor = resolve_actor(request.user)

        try:
            order = self._service.apply_transition(
                str(pk),
                data["status"],
                actor.role,
                actor.user_id,
                note=data["notes"] or None,
                designer_id=request.data.get("designer_id"),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Workflow actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def assign(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/assign/: pending → assigned."""
        serializer = AssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = self._service.assign(
                str(pk),
                serializer.validated_data["designer_id"],
                resolve_actor(request.user),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def accept(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/accept/: assigned → in_production."""
        try:
            order = self._service.accept(str(pk), resolve_actor(request.user))
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="submit-to-manager")
    def submit_to_manager(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/submit-to-manager/: in_production → ready_for_review."""
        serializer = SubmitToManagerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = self._service.submit_to_manager(
                str(pk),
                resolve_actor(request.user),
                completion_note=serializer.validated_data["completion_note"],
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="mark-completed")
    def mark_completed(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/mark-completed/"""
        try:
            order = self._service.mark_completed(str(pk), resolve_actor(request.user))
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="mark-shipped")
    def mark_shipped(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/mark-shipped/"""
        try:
            order = self._service.mark_shipped(str(pk), resolve_actor(request.user))
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="mark-delivered")
    def mark_delivered(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/mark-delivered/

        Delivery also marks an unpaid order as paid.
        """
        try:
            order = self._service.mark_delivered(str(pk), resolve_actor(request.user))
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/reject/: cancels the order."""
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = self._service.reject(
                str(pk),
                resolve_actor(request.user),
                reason=serializer.validated_data["reason"],
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/confirm-payment/"""
        try:
            order = self._service.confirm_payment(str(pk), resolve_actor(request.user))
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)


class CheckoutView(APIView):
    """POST /api/v1/checkout/: turn the caller's cart into an order.

    ``items`` may be given explicitly; otherwise every line in the caller's
    cart is ordered.  Returns 201 with the created order.
    """

    throttle_scope = "checkout"

    def post(self, request: Request) -> Response:
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        customer_id = request.user.pk

        if "items" in data:
            lines = [
                CheckoutLineDTO(
                    customization_id=item["customization_id"],
                    quantity=item["quantity"],
                )
                for item in data["items"]
            ]
        else:
            cart = CartService(CartDjangoRepository()).lines_for(customer_id)
            lines = [
                CheckoutLineDTO(
                    customization_id=line.customization_id,
                    quantity=line.quantity,
                )
                for line in cart
            ]
            if not lines:
                return Response(
                    {"detail": "Your cart is empty."},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        try:
            dto = CheckoutDTO(
                customer_id=customer_id,
                items=lines,
                delivery_address=data["delivery_address"],
            )
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors()[0]["msg"]},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            order = build_checkout_service().create_order_from_cart(dto)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)
