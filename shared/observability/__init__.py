from .setup import setup_observability
from .metrics import (
    restaurant_checkout_total,
    restaurant_checkout_duration_seconds,
    restaurant_order_status_changes_total,
    restaurant_authz_denied_total,
)
