import django_filters

from modules.drivers.models import Driver


class DriverFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    active = django_filters.BooleanFilter(field_name="is_active")

    class Meta:
        model = Driver
        fields = ["name", "active"]
