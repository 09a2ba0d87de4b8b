from prometheus_client import Counter, Histogram

# Business Metrics
restaurant_checkout_total = Counter(
    "restaurant_checkout_total",
    "Total checkouts processed",
    ["status"] # Labels: 'success', 'failed'
)

restaurant_checkout_duration_seconds = Histogram(
    "restaurant_checkout_duration_seconds",
    "Checkout duration in seconds"
)

restaurant_order_status_changes_total = Counter(
    "restaurant_order_status_changes_total",
    "Order status changes applied by the back office",
    ["from_status", "to_status"]
)

restaurant_authz_denied_total = Counter(
    "restaurant_authz_denied_total",
    "Calls rejected by the authorization gate",
    ["tier", "kind"] # kind: 'Unauthenticated' or 'Forbidden'
)
