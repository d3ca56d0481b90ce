"""Delete guards: components referenced elsewhere are never deleted"""
import logging

from django.db import transaction

from backoffice.core.utils import create_audit_log, format_blocked_list

logger = logging.getLogger(__name__)

REFERENCE_LABELS = {
    'inventory_movements': 'inventory movements',
    'project_bom_items': 'project BOM items',
    'quotation_items': 'quotation items',
    'component_alternatives': 'alternatives',
    'certifications': 'certifications',
}


class ComponentInUseError(Exception):
    def __init__(self, component, counts):
        self.component = component
        self.counts = counts
        super().__init__(
            f"Cannot delete component '{component.name}': it is used by {describe_references(counts)}"
        )


def describe_references(counts):
    parts = [f"{count} {REFERENCE_LABELS.get(key, key)}" for key, count in counts.items() if count]
    return ', '.join(parts)


def blocking_references(component):
    return {key: count for key, count in component.reference_counts().items() if count}


def delete_component(component, request=None):
    """Delete a single component; raises ComponentInUseError when referenced"""
    counts = blocking_references(component)
    if counts:
        create_audit_log(
            request=request, action='delete_blocked', model_name='Component',
            object_id=component.pk, changes={'references': counts},
            object_name=component.name, object_reference=component.sku,
        )
        raise ComponentInUseError(component, counts)

    pk, name, sku = component.pk, component.name, component.sku
    component.delete()
    create_audit_log(
        request=request, action='delete', model_name='Component',
        object_id=pk, object_name=name, object_reference=sku,
    )
    logger.info(f"Deleted component {sku}")


def bulk_delete_components(queryset, request=None):
    """
    Delete the unreferenced components of a queryset and skip the rest.

    Returns (deleted_count, blocked_names, message) where message summarises
    the skipped rows for a user notification.
    """
    deleted = 0
    blocked = []
    with transaction.atomic():
        for component in queryset:
            try:
                delete_component(component, request=request)
                deleted += 1
            except ComponentInUseError:
                blocked.append(component.name)

    message = ''
    if blocked:
        message = f"{len(blocked)} component(s) skipped because they are in use: {format_blocked_list(blocked)}"
        logger.warning(message)
    return deleted, blocked, message
