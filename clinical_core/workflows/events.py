# clinical_core/workflows/events.py
"""
Signals sent by the lifecycle service after an accepted write.

Receivers (clinical_core.signals) persist the transition timeline and
audit log. Sending happens after the store acknowledged the write.
"""

from django.dispatch import Signal

# kwargs: record, actor, from_status, to_status
record_transitioned = Signal()

# kwargs: record, actor, action ("created" | "payload_updated" | "assigned")
record_changed = Signal()
