import django_filters

from modules.orders.constants import OrderSource, OrderState
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    state = django_filters.ChoiceFilter(choices=OrderState.choices)
    order_source = django_filters.ChoiceFilter(choices=OrderSource.choices)
    driver = django_filters.UUIDFilter(field_name="driver_id")
    is_paid = django_filters.BooleanFilter()
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total_price", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total_price", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "state",
            "order_source",
            "driver",
            "is_paid",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
