from django.dispatch import Signal

# Sent after a transaction that changed an order's status has committed.
# Receivers get `order` plus `previous_status`.
order_status_changed = Signal()
