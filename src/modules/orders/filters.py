import django_filters

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(field_name="status", choices=OrderStatus.choices)
    payment_status = django_filters.ChoiceFilter(
        field_name="payment_status", choices=PaymentStatus.choices
    )
    designer = django_filters.NumberFilter(field_name="designer_id")
    is_shop_order = django_filters.BooleanFilter(field_name="is_shop_order")
    start_date = django_filters.DateFilter(field_name="order_date", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="order_date", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total_price", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total_price", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "payment_status",
            "designer",
            "is_shop_order",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
