"""
Cache invalidation signals
Automatically invalidate cached summaries when the underlying data changes
"""
from django.db.models.signals import post_save, post_delete
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_lifecycle_cache, invalidate_compliance_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def _invalidate_lifecycle(sender, **kwargs):
    if is_suspended():
        return
    invalidate_lifecycle_cache()
    logger.debug(f"Lifecycle cache invalidated by {sender.__name__} change")


def _invalidate_compliance(sender, **kwargs):
    if is_suspended():
        return
    invalidate_compliance_cache()
    logger.debug(f"Compliance cache invalidated by {sender.__name__} change")


LIFECYCLE_SENDERS = [
    'components.Component',
    'components.ComponentLifecycleStatus',
    'components.ObsolescenceAlert',
]

COMPLIANCE_SENDERS = [
    'components.ComponentCertification',
    'projects.ProjectBomItem',
]

for _sender in LIFECYCLE_SENDERS:
    post_save.connect(_invalidate_lifecycle, sender=_sender, dispatch_uid=f'lifecycle_save_{_sender}')
    post_delete.connect(_invalidate_lifecycle, sender=_sender, dispatch_uid=f'lifecycle_delete_{_sender}')

for _sender in COMPLIANCE_SENDERS:
    post_save.connect(_invalidate_compliance, sender=_sender, dispatch_uid=f'compliance_save_{_sender}')
    post_delete.connect(_invalidate_compliance, sender=_sender, dispatch_uid=f'compliance_delete_{_sender}')
