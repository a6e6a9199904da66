"""Stock side effects are keyed on the state edge, not the destination."""

import pytest

from modules.orders.constants import OrderState, StockEffect
from modules.orders.stock import stock_effect_for

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("from_state", "to_state", "expected"),
    [
        (OrderState.PLACED, OrderState.DELIVERING, StockEffect.DEDUCT),
        (OrderState.COMPLETED, OrderState.DELIVERING, StockEffect.DEDUCT),
        (OrderState.RETURNED, OrderState.DELIVERING, StockEffect.DEDUCT),
        (OrderState.DELIVERING, OrderState.DELIVERING, None),
        (OrderState.DELIVERING, OrderState.RETURNED, StockEffect.RESTORE),
        (OrderState.PLACED, OrderState.RETURNED, StockEffect.RESTORE),
        (OrderState.RETURNED, OrderState.RETURNED, None),
        (OrderState.DELIVERING, OrderState.COMPLETED, None),
        (OrderState.DELIVERING, OrderState.PLACED, None),
        (None, OrderState.PLACED, None),
    ],
)
def test_stock_effect_for_edge(from_state, to_state, expected):
    assert stock_effect_for(from_state, to_state) == expected
