"""
Contract analysis with Claude: extract the parties, risky clauses, key dates
and amounts of a customer contract.
"""
import io
import logging
import re

from django.utils import timezone
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from backoffice.core.ai_services import AiServiceError, ClaudeAiService, extract_json
from backoffice.core.nextcloud import NextcloudError, get_nextcloud_service

logger = logging.getLogger(__name__)

MAX_CONTRACT_CHARS = 100000
ANALYSIS_MAX_TOKENS = 4096
SEVERITIES = ('high', 'medium', 'low')

ANALYSIS_PROMPT = """You are a legal analyst reviewing a commercial contract for an electronics design and manufacturing company.

Contract type: {contract_type}
Contract title: {title}

Analyze the contract text below and reply ONLY with a JSON object using exactly these keys:
{{
  "parties": [{{"name": "...", "role": "...", "vat_number": "..."}}],
  "risk_clauses": [{{"type": "...", "severity": "high|medium|low", "description": "...", "recommendation": "..."}}],
  "key_dates": [{{"label": "...", "date": "YYYY-MM-DD"}}],
  "amounts": [{{"label": "...", "value": 0, "currency": "EUR"}}],
  "summary": "two or three sentences"
}}

CONTRACT TEXT:
{text}
"""


class ContractAnalysisError(Exception):
    """Raised when a contract cannot be analyzed"""


def extract_pdf_text(content):
    """Plain text of a PDF with whitespace runs collapsed"""
    reader = PdfReader(io.BytesIO(content))
    pages = [page.extract_text() or '' for page in reader.pages]
    return re.sub(r'\s+', ' ', ' '.join(pages)).strip()


class ContractAnalysisService:
    def __init__(self, ai_service=None, nextcloud=None):
        self.ai_service = ai_service or ClaudeAiService()
        self.nextcloud = nextcloud

    @staticmethod
    def can_analyze(contract):
        return bool(contract.nextcloud_path or (contract.terms or '').strip())

    def _download_text(self, contract):
        nextcloud = self.nextcloud or get_nextcloud_service()
        if nextcloud is None:
            logger.warning(f"Nextcloud not configured, analyzing terms of {contract.contract_number}")
            return ''
        try:
            return extract_pdf_text(nextcloud.download_file(contract.nextcloud_path))
        except (NextcloudError, PdfReadError) as e:
            logger.warning(f"Could not read PDF of {contract.contract_number}: {str(e)}")
            return ''

    def get_contract_text(self, contract):
        text = ''
        if contract.nextcloud_path:
            text = self._download_text(contract)
        if not text:
            text = (contract.terms or '').strip()
        if not text:
            raise ContractAnalysisError(f"No text available for contract {contract.contract_number}")
        if len(text) > MAX_CONTRACT_CHARS:
            text = text[:MAX_CONTRACT_CHARS] + "... [truncated]"
        return text

    def analyze(self, contract):
        """Run the analysis and store the structured result on the contract"""
        if not self.can_analyze(contract):
            raise ContractAnalysisError("Contract has neither a stored PDF nor terms to analyze")
        if not self.ai_service.is_configured():
            raise ContractAnalysisError("Claude API key not configured")

        text = self.get_contract_text(contract)
        prompt = ANALYSIS_PROMPT.format(
            contract_type=contract.get_type_display(),
            title=contract.title,
            text=text,
        )
        try:
            result = extract_json(self.ai_service.complete(prompt, max_tokens=ANALYSIS_MAX_TOKENS))
        except AiServiceError as e:
            logger.error(f"Contract analysis failed for {contract.contract_number}: {str(e)}")
            raise ContractAnalysisError(str(e)) from e
        if not isinstance(result, dict):
            raise ContractAnalysisError("Unexpected analysis format")

        risk_clauses = [
            {
                'type': clause.get('type', ''),
                'severity': clause.get('severity') if clause.get('severity') in SEVERITIES else 'medium',
                'description': clause.get('description', ''),
                'recommendation': clause.get('recommendation', ''),
            }
            for clause in result.get('risk_clauses') or []
            if isinstance(clause, dict)
        ]
        result['risk_clauses'] = risk_clauses

        contract.ai_analysis_data = result
        contract.ai_extracted_parties = result.get('parties') or []
        contract.ai_risk_flags = risk_clauses
        contract.ai_key_dates = result.get('key_dates') or []
        contract.ai_analyzed_at = timezone.now()
        contract.save(update_fields=['ai_analysis_data', 'ai_extracted_parties', 'ai_risk_flags',
                                     'ai_key_dates', 'ai_analyzed_at', 'updated_at'])
        logger.info(f"Contract {contract.contract_number} analyzed: {len(risk_clauses)} risk clause(s)")
        return result

    @staticmethod
    def generate_analysis_summary(contract):
        if not contract.ai_analysis_data:
            return 'Not analyzed'
        parts = []
        if contract.ai_extracted_parties:
            parts.append(f"{len(contract.ai_extracted_parties)} parties")
        counts = contract.risk_count_by_severity()
        risks = ', '.join(f"{count} {severity}" for severity, count in counts.items() if count)
        parts.append(f"Risks: {risks}" if risks else "No risks flagged")
        if contract.ai_key_dates:
            parts.append(f"{len(contract.ai_key_dates)} key dates")
        summary = contract.ai_analysis_data.get('summary')
        if summary:
            parts.append(summary)
        return ' | '.join(parts)
