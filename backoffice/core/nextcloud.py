"""
Nextcloud WebDAV client used to archive PDFs and keep the customer/project
folder tree in sync with the database.
"""
import json
import logging
import os
import posixpath
from typing import List, Optional
from urllib.parse import quote

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

# Leaf folders created for every customer; parents are created along the way
CUSTOMER_FOLDERS = [
    '01_Anagrafica/Visura_Camerale',
    '01_Anagrafica/Documenti_Identita',
    '01_Anagrafica/Certificazioni',
    '01_Anagrafica/Contratti',
    '01_Preventivi/Bozze',
    '01_Preventivi/Inviati',
    '01_Preventivi/Accettati',
    '01_Preventivi/Rifiutati',
    '01_Preventivi/Scaduti',
    '02_Comunicazioni/Email',
    '02_Comunicazioni/Lettere',
    '02_Comunicazioni/Verbali_Riunioni',
    '03_Progetti',
    '04_Fatturazione/Fatture_Emesse',
    '04_Fatturazione/Fatture_Ricevute',
    '04_Fatturazione/Note_Credito',
    '04_Fatturazione/Pagamenti/Ricevute',
    '04_Fatturazione/Pagamenti/Bonifici',
]

PROJECT_FOLDERS = [
    '01_Preventivi',
    '02_Progettazione/KiCad/libraries/symbols',
    '02_Progettazione/KiCad/libraries/footprints',
    '02_Progettazione/KiCad/libraries/3d_models',
    '02_Progettazione/Gerber',
    '02_Progettazione/BOM',
    '02_Progettazione/3D_Models/PCB',
    '02_Progettazione/3D_Models/Enclosure',
    '02_Progettazione/Datasheet/Component_Datasheets',
    '02_Progettazione/Firmware',
    '03_Produzione/Ordini_PCB',
    '03_Produzione/Assemblaggio',
    '03_Produzione/Collaudo',
    '04_Documentazione/Certificazioni',
    '04_Documentazione/Manuali',
]

QUOTATION_STATUS_FOLDERS = {
    'draft': 'Bozze',
    'sent': 'Inviati',
    'accepted': 'Accettati',
    'rejected': 'Rifiutati',
    'expired': 'Scaduti',
}


class NextcloudError(Exception):
    """Raised when a WebDAV operation fails or Nextcloud is not configured"""


class NextcloudService:
    """Thin WebDAV wrapper around a Nextcloud user's files endpoint"""

    def __init__(self, base_url=None, username=None, password=None, timeout=None):
        self.base_url = (base_url if base_url is not None else getattr(
            settings, 'NEXTCLOUD_URL', os.getenv('NEXTCLOUD_URL', ''))).rstrip('/')
        self.username = username if username is not None else getattr(
            settings, 'NEXTCLOUD_USERNAME', os.getenv('NEXTCLOUD_USERNAME', ''))
        self.password = password if password is not None else getattr(
            settings, 'NEXTCLOUD_PASSWORD', os.getenv('NEXTCLOUD_PASSWORD', ''))
        self.timeout = timeout or int(getattr(settings, 'NEXTCLOUD_TIMEOUT', 30))
        self.webdav_url = f"{self.base_url}/remote.php/dav/files/{quote(self.username)}/"
        self.session = requests.Session()
        self.session.auth = (self.username, self.password)

    def is_configured(self) -> bool:
        return bool(self.base_url and self.username)

    def _url(self, path: str) -> str:
        return self.webdav_url + quote(path.strip('/'))

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        if not self.is_configured():
            raise NextcloudError("Nextcloud is not configured (NEXTCLOUD_URL / NEXTCLOUD_USERNAME)")
        try:
            return self.session.request(method, self._url(path), timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Nextcloud {method} {path} failed: {str(e)}")
            raise NextcloudError(f"Nextcloud request failed: {str(e)}") from e

    # ==================== LOW LEVEL ====================

    def ensure_folder_exists(self, path: str) -> bool:
        """Create every missing segment of `path` (MKCOL); 405 means it already exists"""
        path = path.strip('/')
        if not path or path == '.':
            return True

        current = ''
        for part in path.split('/'):
            current = f"{current}/{part}" if current else part
            response = self._request('MKCOL', current)
            if response.status_code not in (201, 405):
                raise NextcloudError(f"Could not create folder {current}: HTTP {response.status_code}")
        return True

    def upload_content(self, content: bytes, remote_path: str) -> str:
        self.ensure_folder_exists(posixpath.dirname(remote_path))
        response = self._request('PUT', remote_path, data=content)
        if response.status_code not in (200, 201, 204):
            raise NextcloudError(f"Upload of {remote_path} failed: HTTP {response.status_code}")
        logger.info(f"File uploaded to Nextcloud: {remote_path}")
        return remote_path

    def upload_file(self, local_path: str, remote_path: str) -> str:
        if not os.path.exists(local_path):
            raise NextcloudError(f"Local file not found: {local_path}")
        with open(local_path, 'rb') as fh:
            return self.upload_content(fh.read(), remote_path)

    def download_file(self, remote_path: str) -> bytes:
        response = self._request('GET', remote_path)
        if response.status_code != 200:
            raise NextcloudError(f"Download of {remote_path} failed: HTTP {response.status_code}")
        return response.content

    def file_exists(self, path: str) -> bool:
        response = self._request('PROPFIND', path, headers={'Depth': '0'})
        return response.status_code == 207

    def move(self, source_path: str, dest_path: str) -> str:
        response = self._request('MOVE', source_path, headers={
            'Destination': self._url(dest_path),
            'Overwrite': 'F',
        })
        if response.status_code not in (201, 204):
            raise NextcloudError(f"Move {source_path} -> {dest_path} failed: HTTP {response.status_code}")
        logger.info(f"Moved on Nextcloud: {source_path} -> {dest_path}")
        return dest_path

    def delete(self, path: str) -> bool:
        response = self._request('DELETE', path)
        if response.status_code not in (204, 404):
            raise NextcloudError(f"Delete of {path} failed: HTTP {response.status_code}")
        return True

    # ==================== PATHS ====================

    @staticmethod
    def customer_base_path(customer) -> str:
        return f"Clienti/{customer.code} - {customer.company_name}"

    @classmethod
    def project_base_path(cls, project) -> str:
        if not project.customer:
            return f"Progetti/{project.code} - {project.name}"
        return f"{cls.customer_base_path(project.customer)}/03_Progetti/{project.code} - {project.name}"

    # ==================== FOLDER STRUCTURES ====================

    def _create_tree(self, base_path: str, leaves: List[str]) -> List[str]:
        created = []
        for leaf in leaves:
            folder = f"{base_path}/{leaf}"
            self.ensure_folder_exists(folder)
            created.append(folder)
        return created

    def create_customer_folder_structure(self, customer) -> str:
        base_path = self.customer_base_path(customer)
        self._create_tree(base_path, CUSTOMER_FOLDERS)
        customer.nextcloud_folder_created = True
        customer.nextcloud_base_path = base_path
        customer.save(update_fields=['nextcloud_folder_created', 'nextcloud_base_path', 'updated_at'])
        logger.info(f"Customer folder structure created: {base_path}")
        return base_path

    def create_project_folder_structure(self, project) -> str:
        base_path = self.project_base_path(project)
        self._create_tree(base_path, PROJECT_FOLDERS)
        project.nextcloud_folder_created = True
        project.nextcloud_base_path = base_path
        project.save(update_fields=['nextcloud_folder_created', 'nextcloud_base_path', 'updated_at'])
        logger.info(f"Project folder structure created: {base_path}")
        return base_path

    def generate_customer_info_json(self, customer) -> str:
        """Write `_customer_info.json` with registry and payment data into the customer folder"""
        payment_terms = None
        if customer.payment_term:
            term = customer.payment_term
            tranches = list(term.tranches.all())
            if tranches:
                payment_terms = {
                    'type': 'tranches',
                    'name': term.name,
                    'tranches': [
                        {
                            'name': t.name,
                            'percentage': float(t.percentage),
                            'trigger': t.trigger_event,
                            'days_offset': t.days_offset,
                        }
                        for t in tranches
                    ],
                }
            else:
                payment_terms = {'type': 'days', 'name': term.name, 'days': term.days}

        info = {
            'code': customer.code,
            'company_name': customer.company_name,
            'vat_number': customer.vat_number,
            'tax_code': customer.tax_code,
            'sdi_code': customer.sdi_code,
            'email': customer.email,
            'pec_email': customer.pec_email,
            'phone': customer.phone,
            'address': customer.full_address,
            'payment_terms': payment_terms,
        }
        remote_path = f"{self.customer_base_path(customer)}/_customer_info.json"
        return self.upload_content(json.dumps(info, indent=2, ensure_ascii=False).encode('utf-8'), remote_path)

    # ==================== DOCUMENT UPLOADS ====================

    def upload_invoice_issued(self, invoice, local_path: str) -> str:
        if not invoice.customer:
            raise NextcloudError(f"Invoice {invoice.invoice_number} has no customer")
        year = invoice.issue_date.year
        remote_path = (f"{self.customer_base_path(invoice.customer)}/04_Fatturazione/"
                       f"Fatture_Emesse/{year}/{invoice.invoice_number}.pdf")
        return self.upload_file(local_path, remote_path)

    def upload_contract(self, contract, local_path: str) -> str:
        remote_path = (f"{self.customer_base_path(contract.customer)}/01_Anagrafica/"
                       f"Contratti/{contract.contract_number}.pdf")
        return self.upload_file(local_path, remote_path)

    def upload_quotation(self, quotation, local_path: str) -> str:
        if not quotation.customer:
            raise NextcloudError(f"Quotation {quotation.number} has no customer")
        status_folder = QUOTATION_STATUS_FOLDERS.get(quotation.status, 'Bozze')
        remote_path = (f"{self.customer_base_path(quotation.customer)}/01_Preventivi/"
                       f"{status_folder}/preventivo-{quotation.number}.pdf")
        return self.upload_file(local_path, remote_path)

    def archive_folder(self, source_path: str, archive_type: str = 'Archiviati') -> str:
        """Move a folder into `__{archive_type}` beside it"""
        if not self.file_exists(source_path):
            raise NextcloudError(f"Cannot archive {source_path}: folder not found")
        parent = posixpath.dirname(source_path.rstrip('/'))
        name = posixpath.basename(source_path.rstrip('/'))
        archive_root = f"{parent}/__{archive_type}" if parent else f"__{archive_type}"
        self.ensure_folder_exists(archive_root)
        return self.move(source_path, f"{archive_root}/{name}")


def get_nextcloud_service() -> Optional[NextcloudService]:
    """Return a configured client, or None when Nextcloud is not set up"""
    service = NextcloudService()
    return service if service.is_configured() else None
