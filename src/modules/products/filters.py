"""Query-string filters for the product listing."""

import django_filters

from modules.products.models import Product, ProductStatus


class ProductFilter(django_filters.FilterSet):
    sku = django_filters.CharFilter(lookup_expr="iexact")
    price_min = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    has_options = django_filters.BooleanFilter()
    status = django_filters.ChoiceFilter(choices=ProductStatus.choices)
    in_stock = django_filters.BooleanFilter(method="filter_in_stock")

    class Meta:
        model = Product
        fields = ("sku", "price_min", "price_max", "has_options", "status", "in_stock")

    def filter_in_stock(self, queryset, name, value):
        # Flat quantity only; variant stock is reported by the catalog endpoints.
        return queryset.filter(quantity__gt=0) if value else queryset.filter(quantity=0)
