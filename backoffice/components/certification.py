"""
CE marking compliance analysis over component certifications
"""
import logging
from datetime import timedelta

from django.utils import timezone

from backoffice.core.cache_utils import (
    cached_query, invalidate_compliance_cache, COMPLIANCE_REPORT_CACHE_TTL, COMPLIANCE_REPORT_PREFIX
)
from .models import Component, ComponentCertification

logger = logging.getLogger(__name__)

CE_REQUIRED_CERTIFICATIONS = {
    'CE': 'CE Marking',
    'EMC': 'Electromagnetic Compatibility (EMC)',
    'LVD': 'Low Voltage Directive (LVD)',
    'RoHS': 'Restriction of Hazardous Substances (RoHS)',
    'REACH': 'Registration, Evaluation, Authorisation of Chemicals (REACH)',
}

CRITICAL_CERTIFICATIONS = ['CE', 'EMC', 'LVD']


def expiry_urgency(days):
    if days <= 30:
        return 'critical'
    if days <= 60:
        return 'high'
    return 'medium'


def compliance_status_for_score(score):
    if score >= 95:
        return 'compliant'
    if score >= 80:
        return 'mostly_compliant'
    if score >= 60:
        return 'partially_compliant'
    return 'non_compliant'


@cached_query(cache_ttl=COMPLIANCE_REPORT_CACHE_TTL, key_prefix=COMPLIANCE_REPORT_PREFIX)
def _cached_ce_compliance(project_id):
    from backoffice.projects.models import Project
    project = Project.objects.get(pk=project_id)
    return CertificationManagementService().analyze_ce_compliance(project)


class CertificationManagementService:

    def get_project_components(self, project):
        return (
            Component.objects.filter(bom_items__bom__project=project)
            .prefetch_related('certifications')
            .distinct()
            .order_by('name')
        )

    def analyze_component_certifications(self, component):
        valid_certs = {}
        for cert in component.certifications.valid().ce_relevant():
            valid_certs.setdefault(cert.certification_type, cert)

        analysis = {
            'component_id': component.id,
            'component_name': component.name,
            'manufacturer': component.manufacturer,
            'valid_certifications': [],
            'missing_certifications': [],
            'expiring_certifications': [],
            'compliance_score': 0,
            'risk_level': 'low',
        }

        for cert_type, cert_name in CE_REQUIRED_CERTIFICATIONS.items():
            cert = valid_certs.get(cert_type)
            if cert is None:
                analysis['missing_certifications'].append(cert_type)
                continue

            analysis['valid_certifications'].append({
                'type': cert_type,
                'name': cert_name,
                'certificate_number': cert.certificate_number,
                'expiry_date': cert.expiry_date,
                'status': cert.status,
            })
            if cert.is_expiring_soon():
                analysis['expiring_certifications'].append({
                    'type': cert_type,
                    'name': cert_name,
                    'component_name': component.name,
                    'expiry_date': cert.expiry_date,
                    'days_until_expiry': cert.days_until_expiry,
                })

        total_required = len(CE_REQUIRED_CERTIFICATIONS)
        analysis['compliance_score'] = len(analysis['valid_certifications']) / total_required * 100
        analysis['risk_level'] = self.calculate_component_risk(analysis)
        return analysis

    @staticmethod
    def calculate_component_risk(analysis):
        score = analysis['compliance_score']
        expiring = len(analysis['expiring_certifications'])
        if score < 50 or expiring > 2:
            return 'high'
        if score < 80 or expiring > 0:
            return 'medium'
        return 'low'

    def analyze_ce_compliance(self, project):
        analysis = {
            'compliance_status': 'unknown',
            'required_certifications': dict(CE_REQUIRED_CERTIFICATIONS),
            'component_analysis': [],
            'missing_certifications': [],
            'expiring_certifications': [],
            'recommendations': [],
            'overall_score': 0,
        }

        for component in self.get_project_components(project):
            component_analysis = self.analyze_component_certifications(component)
            analysis['component_analysis'].append(component_analysis)
            for missing in component_analysis['missing_certifications']:
                if missing not in analysis['missing_certifications']:
                    analysis['missing_certifications'].append(missing)
            analysis['expiring_certifications'].extend(component_analysis['expiring_certifications'])

        if analysis['component_analysis']:
            scores = [c['compliance_score'] for c in analysis['component_analysis']]
            analysis['overall_score'] = round(sum(scores) / len(scores), 2)

        analysis['compliance_status'] = compliance_status_for_score(analysis['overall_score'])
        analysis['recommendations'] = self.generate_recommendations(analysis)
        return analysis

    def analyze_ce_compliance_cached(self, project):
        return _cached_ce_compliance(project.pk)

    def generate_recommendations(self, analysis):
        recommendations = []

        if analysis['missing_certifications']:
            recommendations.append({
                'type': 'missing_certifications',
                'priority': 'high',
                'title': 'Missing Required Certifications',
                'description': 'Some components lack required certifications for CE marking',
                'action': 'Contact suppliers to obtain missing certification documents',
                'certifications': analysis['missing_certifications'],
            })

        if analysis['expiring_certifications']:
            recommendations.append({
                'type': 'expiring_certifications',
                'priority': 'medium',
                'title': 'Certifications Expiring Soon',
                'description': 'Some certifications will expire within 90 days',
                'action': 'Request updated certification documents from suppliers',
                'certifications': analysis['expiring_certifications'],
            })

        if analysis['overall_score'] < 80:
            recommendations.append({
                'type': 'low_compliance',
                'priority': 'high',
                'title': 'Low Compliance Score',
                'description': f"Project compliance score is {analysis['overall_score']}%, below recommended 80%",
                'action': 'Review component selection and obtain missing certifications',
            })

        high_risk = sum(1 for c in analysis['component_analysis'] if c['risk_level'] == 'high')
        if high_risk:
            recommendations.append({
                'type': 'component_substitution',
                'priority': 'medium',
                'title': 'Consider Component Substitutions',
                'description': f"{high_risk} components have high certification risks",
                'action': 'Evaluate alternative components with better certification coverage',
            })

        return recommendations

    def generate_certification_report(self, project):
        analysis = self.analyze_ce_compliance(project)
        customer = project.customer.company_name if project.customer_id else None
        return {
            'project': {
                'id': project.id,
                'name': project.name,
                'code': project.code,
                'customer': customer,
                'status': project.status,
            },
            'report_date': timezone.now(),
            'compliance_analysis': analysis,
            'certification_matrix': self.generate_certification_matrix(project),
            'action_plan': self.generate_action_plan(analysis),
            'document_checklist': self.generate_document_checklist(analysis),
        }

    def generate_certification_matrix(self, project):
        matrix = []
        for component in self.get_project_components(project):
            valid_certs = {}
            for cert in component.certifications.valid().ce_relevant():
                valid_certs.setdefault(cert.certification_type, cert)

            row = {
                'component_id': component.id,
                'component_name': component.name,
                'manufacturer': component.manufacturer,
                'certifications': {},
            }
            for cert_type in CE_REQUIRED_CERTIFICATIONS:
                cert = valid_certs.get(cert_type)
                row['certifications'][cert_type] = {
                    'has_certification': cert is not None,
                    'certificate_number': cert.certificate_number if cert else None,
                    'expiry_date': cert.expiry_date if cert else None,
                    'status': cert.status if cert else 'missing',
                    'expiring_soon': cert.is_expiring_soon() if cert else False,
                }
            matrix.append(row)
        return matrix

    def generate_action_plan(self, analysis):
        now = timezone.now()
        actions = []
        priority = 1

        critical_missing = [c for c in analysis['missing_certifications'] if c in CRITICAL_CERTIFICATIONS]
        if critical_missing:
            actions.append({
                'priority': priority,
                'task': 'Obtain Critical Certifications',
                'description': f"Obtain missing critical certifications: {', '.join(critical_missing)}",
                'due_date': now + timedelta(weeks=2),
                'responsible': 'Procurement Team',
                'status': 'pending',
            })
            priority += 1

        if analysis['expiring_certifications']:
            actions.append({
                'priority': priority,
                'task': 'Renew Expiring Certifications',
                'description': 'Contact suppliers for certification renewals',
                'due_date': now + timedelta(weeks=4),
                'responsible': 'Quality Team',
                'status': 'pending',
            })
            priority += 1

        other_missing = [c for c in analysis['missing_certifications'] if c not in CRITICAL_CERTIFICATIONS]
        if other_missing:
            actions.append({
                'priority': priority,
                'task': 'Complete Certification Set',
                'description': f"Obtain remaining certifications: {', '.join(other_missing)}",
                'due_date': now + timedelta(weeks=6),
                'responsible': 'Procurement Team',
                'status': 'pending',
            })

        return actions

    @staticmethod
    def generate_document_checklist(analysis):
        def item(description, status='pending'):
            return {'required': True, 'status': status, 'description': description}

        return {
            'technical_documentation': item('Complete technical documentation file'),
            'declaration_of_conformity': item('EU Declaration of Conformity'),
            'component_certificates': item(
                'All component certification documents',
                'complete' if analysis['overall_score'] >= 95 else 'pending',
            ),
            'test_reports': item('EMC and LVD test reports'),
            'risk_assessment': item('Risk assessment documentation'),
            'user_manual': item('User manual with safety instructions'),
        }

    def check_expiring_certifications(self, days_ahead=90):
        expiring = ComponentCertification.objects.expiring_soon(days_ahead).select_related('component')
        return [
            {
                'certification_id': cert.id,
                'component_id': cert.component_id,
                'component_name': cert.component.name,
                'certification_type': cert.certification_type,
                'expiry_date': cert.expiry_date,
                'days_until_expiry': cert.days_until_expiry,
                'urgency': expiry_urgency(cert.days_until_expiry),
            }
            for cert in expiring
        ]

    def mark_expired(self):
        """Flip certifications that passed their expiry date to expired"""
        today = timezone.localdate()
        updated = ComponentCertification.objects.filter(
            status='valid', expiry_date__lte=today
        ).update(status='expired', updated_at=timezone.now())
        if updated:
            invalidate_compliance_cache()
            logger.info(f"Marked {updated} certifications as expired")
        return updated

    def get_certification_statistics(self):
        total_components = Component.objects.count()
        stats = {
            'total_components': total_components,
            'certification_coverage': {},
            'expiring_soon': ComponentCertification.objects.expiring_soon().count(),
            'expired': ComponentCertification.objects.filter(status='expired').count(),
        }
        for cert_type, cert_name in CE_REQUIRED_CERTIFICATIONS.items():
            with_cert = Component.objects.filter(
                certifications__certification_type=cert_type,
                certifications__status='valid',
            ).distinct().count()
            stats['certification_coverage'][cert_type] = {
                'name': cert_name,
                'components_with_cert': with_cert,
                'coverage_percentage': (with_cert / total_components * 100) if total_components else 0,
            }
        return stats
