"""
Checklist-driven contract review with Claude.

Every contract type has a base checklist plus type-specific points; the model
marks each point present / needs_improvement / missing and lists legal risks,
compliance issues and improvements. The score and issue count are derived here.
"""
import logging

from django.utils import timezone
from django.utils.html import strip_tags

from backoffice.core.ai_services import AiServiceError, ClaudeAiService, extract_json
from .contract_analysis import ContractAnalysisError

logger = logging.getLogger(__name__)

REVIEW_MAX_TOKENS = 4096
RISK_WEIGHTS = {'critical': 10, 'high': 7, 'medium': 5, 'low': 3, 'none': 1}
DEFAULT_RISK_WEIGHT = 5
CRITICAL_ISSUE_PENALTY = 10
ISSUE_STATUSES = ('missing', 'needs_improvement')


def _item(label, description, severity, required=True):
    return {'label': label, 'description': description, 'required': required, 'severity': severity}


BASE_CHECKLIST = {
    'parties_identified': _item(
        'Parties identified',
        'Company name, registered office, VAT/tax code and legal representative of every party',
        'critical'),
    'clear_dates': _item('Clear dates', 'Effective date, duration and any expiry terms', 'high'),
    'object_defined': _item('Object defined', 'The subject of the contract is described clearly and completely',
                            'critical'),
    'signatures': _item('Signatures', 'How the contract is signed and when signatures are valid', 'high'),
    'competent_court': _item('Competent court', 'Court with jurisdiction over disputes', 'medium'),
    'applicable_law': _item('Applicable law', 'Governing law of the contract (e.g. Italian law)', 'medium'),
    'gdpr_compliance': _item('GDPR compliance', 'Processing of personal data under EU Regulation 2016/679',
                             'critical'),
}

TYPE_CHECKLISTS = {
    'nda': {
        'confidential_info': _item('Confidential information defined',
                                   'What counts as confidential information', 'critical'),
        'exclusions': _item('Confidentiality exclusions',
                            'Information excluded from the confidentiality obligation', 'high'),
        'duration': _item('Obligation duration', 'How long the confidentiality obligation lasts', 'critical'),
        'return_obligation': _item('Return obligation',
                                   'Return or destruction of confidential material at the end', 'medium'),
        'authorized_use': _item('Authorized use', 'Purposes for which the information may be used', 'high'),
        'penalties': _item('Breach penalties', 'Penalties for breaching confidentiality', 'medium', required=False),
    },
    'service_agreement': {
        'sla_defined': _item('SLA defined', 'Service levels, response and resolution times', 'critical'),
        'responsibilities': _item('Responsibilities', 'Obligations of each party', 'high'),
        'warranty': _item('Warranties', 'Warranties on the services delivered', 'high'),
        'termination': _item('Termination clauses', 'Conditions and notice for termination', 'critical'),
        'ip_rights': _item('Intellectual property', 'Ownership of the work product and licences', 'critical'),
        'payment_terms': _item('Payment terms', 'Amounts, schedule and late payment interest', 'high'),
        'liability_limit': _item('Limitation of liability', 'Caps and exclusions of liability', 'high'),
        'support_maintenance': _item('Support and maintenance', 'Post-delivery support and maintenance',
                                     'medium', required=False),
    },
    'supply_contract': {
        'product_specs': _item('Product specifications', 'Technical specifications of the supplied goods',
                               'critical'),
        'delivery_terms': _item('Delivery terms', 'Delivery times, place and Incoterms', 'critical'),
        'quality_standards': _item('Quality standards', 'Acceptance criteria and quality standards', 'high'),
        'defects_warranty': _item('Defects warranty', 'Warranty against defects (art. 1490 c.c.)', 'critical'),
        'payment_terms': _item('Payment terms', 'Amounts, schedule and late payment interest', 'high'),
        'force_majeure': _item('Force majeure', 'Events excusing non-performance', 'medium'),
        'retention_title': _item('Retention of title', 'Ownership retained until full payment', 'medium',
                                 required=False),
        'returns_claims': _item('Returns and claims', 'Procedure and deadlines for returns and claims', 'high'),
    },
    'partnership': {
        'governance': _item('Governance', 'Management bodies and their powers', 'critical'),
        'profit_sharing': _item('Profit/loss sharing', 'How profits and losses are split', 'critical'),
        'ip_ownership': _item('Intellectual property', 'Ownership of jointly developed IP', 'critical'),
        'non_compete': _item('Non-compete', 'Scope, territory and duration of the non-compete', 'high'),
        'exit_strategy': _item('Exit strategy', 'How a partner leaves and how shares are valued', 'critical'),
        'contributions': _item('Contributions', 'What each partner contributes', 'high'),
        'decision_making': _item('Decision making', 'Voting rules and reserved matters', 'high'),
        'deadlock': _item('Deadlock resolution', 'How stalemates between partners are resolved', 'medium',
                          required=False),
    },
}

REVIEW_PROMPT = """You are a lawyer specialised in Italian contract law. Review the contract below.

CONTRACT
- Type: {contract_type}
- Title: {title}
- Customer: {customer}

CHECKLIST
{checklist}

CONTRACT TEXT
{text}

For every checklist point (use the key before the colon) give:
- status: "present", "needs_improvement" or "missing"
- comment, suggestion and suggested_text
- risk_level: "none", "low", "medium", "high" or "critical"
Also list legal risks (unfair clauses, dangerous ambiguities), compliance issues with GDPR, the Italian Civil
Code and the Consumer Code where applicable, and concrete improvements.

Reply ONLY with JSON:
{{
  "checklist_results": {{"<key>": {{"status": "...", "comment": "...", "suggestion": "...",
                         "suggested_text": "...", "risk_level": "..."}}}},
  "legal_risks": [{{"title": "...", "description": "...", "severity": "low|medium|high|critical",
                    "recommendation": "..."}}],
  "compliance_issues": [{{"regulation": "...", "issue": "...", "article": "...",
                          "severity": "low|medium|high|critical", "remedy": "..."}}],
  "improvements": [{{"area": "...", "current": "...", "suggested": "...", "priority": "low|medium|high"}}],
  "overall_assessment": {{"quality": "...", "strengths": [], "weaknesses": [],
                          "readiness": "draft|needs_revision|ready_for_signature"}}
}}
"""

DEFAULT_ASSESSMENT = {
    'quality': 'Not available',
    'strengths': [],
    'weaknesses': [],
    'readiness': 'needs_revision',
}


class ContractReviewService:
    def __init__(self, ai_service=None):
        self.ai_service = ai_service or ClaudeAiService()

    @staticmethod
    def checklist_for_type(contract_type):
        checklist = dict(BASE_CHECKLIST)
        checklist.update(TYPE_CHECKLISTS.get(contract_type, {}))
        return checklist

    def build_prompt(self, contract, text, checklist):
        lines = []
        for key, item in checklist.items():
            required = 'required' if item['required'] else 'optional'
            lines.append(f"- {key}: {item['label']} ({required}, severity {item['severity']}): {item['description']}")
        return REVIEW_PROMPT.format(
            contract_type=contract.get_type_display(),
            title=contract.title,
            customer=contract.customer.company_name,
            checklist='\n'.join(lines),
            text=text,
        )

    def review(self, contract):
        """Review the contract terms and store score, issue count and the full review"""
        text = strip_tags(contract.terms or '').strip()
        if not text:
            raise ContractAnalysisError(f"Contract {contract.contract_number} has no terms to review")
        if not self.ai_service.is_configured():
            raise ContractAnalysisError("Claude API key not configured")

        checklist = self.checklist_for_type(contract.type)
        try:
            response = extract_json(self.ai_service.complete(
                self.build_prompt(contract, text, checklist), max_tokens=REVIEW_MAX_TOKENS
            ))
        except AiServiceError as e:
            logger.error(f"Contract review failed for {contract.contract_number}: {str(e)}")
            raise ContractAnalysisError(str(e)) from e
        if not isinstance(response, dict):
            raise ContractAnalysisError("Unexpected review format")

        review_data = {
            'checklist_results': response.get('checklist_results') or {},
            'legal_risks': response.get('legal_risks') or [],
            'compliance_issues': response.get('compliance_issues') or [],
            'improvements': response.get('improvements') or [],
            'overall_assessment': response.get('overall_assessment') or dict(DEFAULT_ASSESSMENT),
        }
        contract.ai_review_data = review_data
        contract.ai_review_score = self.calculate_score(review_data)
        contract.ai_review_issues_count = self.count_issues(review_data)
        contract.ai_reviewed_at = timezone.now()
        contract.save(update_fields=['ai_review_data', 'ai_review_score', 'ai_review_issues_count',
                                     'ai_reviewed_at', 'updated_at'])
        logger.info(f"Contract {contract.contract_number} reviewed: score {contract.ai_review_score}, "
                    f"{contract.ai_review_issues_count} issue(s)")
        return review_data

    @staticmethod
    def calculate_score(review_data):
        results = review_data.get('checklist_results') or {}
        if not results:
            return 0

        points = 0.0
        max_points = 0
        for result in results.values():
            weight = RISK_WEIGHTS.get(result.get('risk_level', 'medium'), DEFAULT_RISK_WEIGHT)
            max_points += weight
            status = result.get('status', 'missing')
            if status == 'present':
                points += weight
            elif status == 'needs_improvement':
                points += weight * 0.5
        if max_points == 0:
            return 0

        score = int(round(points / max_points * 100))
        issues = (review_data.get('legal_risks') or []) + (review_data.get('compliance_issues') or [])
        critical = sum(1 for issue in issues if issue.get('severity', 'low') == 'critical')
        score -= critical * CRITICAL_ISSUE_PENALTY
        return max(0, min(100, score))

    @staticmethod
    def count_issues(review_data):
        checklist_issues = sum(
            1 for result in (review_data.get('checklist_results') or {}).values()
            if result.get('status', '') in ISSUE_STATUSES
        )
        return (checklist_issues + len(review_data.get('legal_risks') or [])
                + len(review_data.get('compliance_issues') or []))

    def apply_suggestions(self, contract, selected_keys=None):
        """Contract terms with the suggested text of the chosen (or every weak) checklist point appended"""
        results = (contract.ai_review_data or {}).get('checklist_results') or {}
        checklist = self.checklist_for_type(contract.type)
        keys = selected_keys or [
            key for key, result in results.items()
            if result.get('status') in ISSUE_STATUSES and result.get('suggested_text')
        ]

        additions = []
        for key in keys:
            suggested = (results.get(key) or {}).get('suggested_text')
            if suggested:
                label = checklist.get(key, {}).get('label', key)
                additions.append(f"{label}:\n{suggested}")
        text = strip_tags(contract.terms or '')
        if not additions:
            return text
        return text + "\n\n=== SUGGESTIONS APPLIED FROM AI REVIEW ===\n\n" + '\n\n'.join(additions)
