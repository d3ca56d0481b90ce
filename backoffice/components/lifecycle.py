"""
Component lifecycle tracking: obsolescence alerts, alternatives and the
dashboard summary
"""
import logging
from decimal import Decimal

from django.db.models import Q
from django.utils import timezone

from backoffice.core.cache_signals import suspend_cache_signals
from backoffice.core.cache_utils import (
    cached_query, invalidate_lifecycle_cache, LIFECYCLE_SUMMARY_CACHE_TTL, LIFECYCLE_SUMMARY_PREFIX
)
from backoffice.core.utils import add_months
from .models import (
    Component, ComponentLifecycleStatus, ComponentAlternative, ObsolescenceAlert
)

logger = logging.getLogger(__name__)

LAST_TIME_BUY_WINDOW_DAYS = 30
EOL_IMMINENT_MONTHS = 6


@cached_query(cache_ttl=LIFECYCLE_SUMMARY_CACHE_TTL, key_prefix=LIFECYCLE_SUMMARY_PREFIX)
def _lifecycle_summary():
    summary = {'total_components': ComponentLifecycleStatus.objects.count()}
    for stage, _label in ComponentLifecycleStatus.STAGE_CHOICES:
        summary[stage] = ComponentLifecycleStatus.objects.filter(lifecycle_stage=stage).count()
    summary['critical_alerts'] = ObsolescenceAlert.objects.unresolved().critical().count()
    summary['pending_alerts'] = ObsolescenceAlert.objects.unresolved().unacknowledged().count()
    return summary


class ComponentLifecycleService:
    """Generates obsolescence alerts and scores replacement candidates"""

    def check_lifecycle_status(self):
        results = {
            'components_checked': 0,
            'alerts_created': 0,
            'critical_issues': 0,
        }

        statuses = ComponentLifecycleStatus.objects.select_related('component').all()
        with suspend_cache_signals():
            for status in statuses:
                results['components_checked'] += 1
                created = self.generate_alerts_for_component(status.component, lifecycle=status)
                results['alerts_created'] += len(created)
                if status.urgency_level == 'critical':
                    results['critical_issues'] += 1
        invalidate_lifecycle_cache()

        logger.info(
            f"Lifecycle check: {results['components_checked']} components, "
            f"{results['alerts_created']} new alerts, {results['critical_issues']} critical"
        )
        return results

    def generate_alerts_for_component(self, component, lifecycle=None):
        """Create the alerts the component's lifecycle state calls for; returns only new alerts"""
        if lifecycle is None:
            try:
                lifecycle = component.lifecycle_status
            except ComponentLifecycleStatus.DoesNotExist:
                return []

        today = timezone.localdate()
        alerts = []

        if lifecycle.lifecycle_stage == 'eol_announced' and lifecycle.eol_date:
            eol_date_str = lifecycle.eol_date.strftime('%Y-%m-%d')
            if lifecycle.eol_date >= add_months(today, EOL_IMMINENT_MONTHS):
                alerts.append(self.create_alert(
                    component, 'eol_warning', 'medium',
                    f"EOL Warning: {component.name}",
                    f"Component {component.name} will reach End of Life on {eol_date_str}. "
                    f"Consider finding alternatives."
                ))
            else:
                alerts.append(self.create_alert(
                    component, 'eol_imminent', 'high',
                    f"EOL Imminent: {component.name}",
                    f"Component {component.name} will reach End of Life in {lifecycle.days_until_eol} days. "
                    f"Immediate action required."
                ))

        if lifecycle.last_time_buy_date:
            if abs((lifecycle.last_time_buy_date - today).days) <= LAST_TIME_BUY_WINDOW_DAYS:
                alerts.append(self.create_alert(
                    component, 'last_time_buy', 'critical',
                    f"Last Time Buy: {component.name}",
                    f"Last chance to order {component.name}. "
                    f"Last time buy date: {lifecycle.last_time_buy_date.strftime('%Y-%m-%d')}"
                ))

        if lifecycle.lifecycle_stage == 'obsolete':
            alerts.append(self.create_alert(
                component, 'obsolete', 'critical',
                f"Component Obsolete: {component.name}",
                f"Component {component.name} is now obsolete. Find alternatives immediately."
            ))

        return [alert for alert in alerts if alert is not None]

    def create_alert(self, component, alert_type, severity, title, message):
        """Create an alert unless an unresolved one of the same type already exists"""
        exists = ObsolescenceAlert.objects.filter(
            component=component, alert_type=alert_type, is_resolved=False
        ).exists()
        if exists:
            return None

        alert = ObsolescenceAlert.objects.create(
            component=component,
            alert_type=alert_type,
            severity=severity,
            title=title,
            message=message,
            affected_projects=self.find_affected_project_ids(component),
            alert_date=timezone.now(),
        )
        logger.info(f"Created {alert_type} alert for component {component.sku}")
        return alert

    def find_affected_project_ids(self, component):
        from backoffice.projects.models import Project
        return list(
            Project.objects.exclude(status__in=['completed', 'cancelled'])
            .filter(boms__items__component=component)
            .values_list('id', flat=True)
            .distinct()
        )

    def suggest_alternatives(self, component, min_compatibility=None, alternative_type=None,
                             recommended_only=False):
        queryset = ComponentAlternative.objects.filter(
            original_component=component
        ).select_related('alternative_component')

        if min_compatibility is not None:
            queryset = queryset.filter(compatibility_score__gte=Decimal(str(min_compatibility)))
        if alternative_type:
            queryset = queryset.filter(alternative_type=alternative_type)
        if recommended_only:
            queryset = queryset.filter(is_recommended=True)

        return queryset.order_by('-compatibility_score', '-is_recommended')

    def add_alternative(self, original, alternative, data=None):
        data = dict(data.items()) if data else {}
        if 'compatibility_score' not in data:
            data['compatibility_score'] = self.calculate_compatibility_score(original, alternative)
        alt = ComponentAlternative(
            original_component=original,
            alternative_component=alternative,
            alternative_type=data.get('alternative_type', 'functional_equivalent'),
            compatibility_score=Decimal(str(data['compatibility_score'])),
            compatibility_notes=data.get('compatibility_notes', ''),
            is_recommended=data.get('is_recommended', False),
        )
        if original.unit_price is not None and alternative.unit_price is not None:
            alt.price_difference = alternative.unit_price - original.unit_price
        alt.full_clean()
        alt.save()
        return alt

    def calculate_compatibility_score(self, original, alternative):
        score = 0.0
        if original.package == alternative.package:
            score += 0.3
        if original.category_id == alternative.category_id:
            score += 0.2
        if original.manufacturer == alternative.manufacturer:
            score += 0.1
        score += self.compare_specifications(original.specifications, alternative.specifications) * 0.4
        return round(min(1.0, score), 2)

    @staticmethod
    def compare_specifications(original_specs, alternative_specs):
        if not original_specs or not alternative_specs:
            return 0.5
        if not isinstance(original_specs, dict) or not isinstance(alternative_specs, dict):
            return 0.5

        common_keys = set(original_specs) & set(alternative_specs)
        if not common_keys:
            return 0.0
        matches = sum(1 for key in common_keys if original_specs[key] == alternative_specs[key])
        return matches / len(common_keys)

    def find_candidate_alternatives(self, component, min_score=0.7, limit=10):
        """Score same-category components that are not linked yet"""
        linked_ids = ComponentAlternative.objects.filter(
            original_component=component
        ).values_list('alternative_component_id', flat=True)

        candidates = Component.objects.exclude(pk=component.pk).exclude(pk__in=linked_ids).exclude(status='obsolete')
        if component.category_id:
            candidates = candidates.filter(category_id=component.category_id)
        else:
            candidates = candidates.filter(Q(package=component.package) | Q(manufacturer=component.manufacturer))

        scored = []
        for candidate in candidates:
            score = self.calculate_compatibility_score(component, candidate)
            if score >= min_score:
                scored.append((candidate, score))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]

    def get_lifecycle_summary(self):
        return _lifecycle_summary()
