"""
PDF rendering of invoices, quotations and contracts.

Documents are written under MEDIA_ROOT/temp and, when Nextcloud is configured,
archived in the customer's folder tree.
"""
import logging
import os

from django.conf import settings
from django.utils import timezone
from django.utils.html import escape, strip_tags
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backoffice.core.models import CompanyProfile
from backoffice.core.nextcloud import get_nextcloud_service

logger = logging.getLogger(__name__)

HEADER_COLOR = colors.HexColor('#1B2A4A')
GRID_COLOR = colors.HexColor('#94A3B8')


def format_currency(value, currency='EUR'):
    if value is None:
        return '-'
    symbol = '€' if currency == 'EUR' else f'{currency} '
    return f"{symbol} {value:,.2f}"


class PdfGeneratorService:
    def __init__(self, output_dir=None, profile=None):
        media_root = getattr(settings, 'MEDIA_ROOT', os.getenv('MEDIA_ROOT', 'media'))
        self.output_dir = output_dir or os.path.join(str(media_root), 'temp')
        self.profile = profile or CompanyProfile.current()
        styles = getSampleStyleSheet()
        self.styles = {
            'title': styles['Title'],
            'heading': styles['Heading2'],
            'normal': styles['Normal'],
            'small': ParagraphStyle('small', parent=styles['Normal'], fontSize=8, leading=10),
        }

    # ==================== HELPERS ====================

    def _output_path(self, number, date):
        os.makedirs(self.output_dir, exist_ok=True)
        safe_number = str(number).replace('/', '-')
        return os.path.join(self.output_dir, f"{safe_number}_{date:%Y-%m-%d}.pdf")

    def _company_block(self):
        p = self.profile
        lines = [f"<b>{escape(p.company_name or 'Company')}</b>"]
        if p.formatted_address:
            lines.append(escape(p.formatted_address))
        if p.vat_number:
            lines.append(f"VAT {p.vat_number}")
        contacts = ' - '.join(x for x in [p.email, p.phone, p.website] if x)
        if contacts:
            lines.append(contacts)
        return Paragraph('<br/>'.join(lines), self.styles['small'])

    def _customer_block(self, customer):
        lines = [f"<b>{escape(customer.company_name)}</b>"]
        if customer.full_address:
            lines.append(escape(customer.full_address))
        if customer.vat_number:
            lines.append(f"VAT {customer.vat_number}")
        if customer.sdi_code:
            lines.append(f"SDI {customer.sdi_code}")
        return Paragraph('<br/>'.join(lines), self.styles['normal'])

    def _header(self, title, customer, details):
        """Company/customer header, title and a key/value details table"""
        header = Table([[self._company_block(), self._customer_block(customer)]], colWidths=[95 * mm, 80 * mm])
        header.setStyle(TableStyle([('VALIGN', (0, 0), (-1, -1), 'TOP')]))
        detail_table = Table([[k, v] for k, v in details], colWidths=[40 * mm, 60 * mm])
        detail_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
        ]))
        return [header, Spacer(1, 10 * mm), Paragraph(escape(title), self.styles['title']), detail_table,
                Spacer(1, 6 * mm)]

    def _items_table(self, header, rows, col_widths):
        table = Table([header] + rows, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), HEADER_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('GRID', (0, 0), (-1, -1), 0.5, GRID_COLOR),
            ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        return table

    def _totals_table(self, rows):
        table = Table(rows, colWidths=[135 * mm, 40 * mm])
        table.setStyle(TableStyle([
            ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('LINEABOVE', (0, -1), (-1, -1), 1, HEADER_COLOR),
        ]))
        return table

    def _build(self, path, title, story):
        doc = SimpleDocTemplate(path, pagesize=A4, title=title, author=self.profile.company_name or '',
                                leftMargin=18 * mm, rightMargin=18 * mm, topMargin=15 * mm, bottomMargin=15 * mm)
        doc.build(story)
        return path

    def _paragraphs(self, text):
        return [Paragraph(escape(strip_tags(line)), self.styles['normal'])
                for line in text.splitlines() if line.strip()]

    # ==================== DOCUMENTS ====================

    def generate_invoice_pdf(self, invoice, upload=True):
        try:
            path = self._output_path(invoice.invoice_number, invoice.issue_date)
            details = [
                ('Invoice', invoice.invoice_number),
                ('Type', invoice.get_type_display()),
                ('Issue date', invoice.issue_date.strftime('%d/%m/%Y')),
                ('Due date', invoice.due_date.strftime('%d/%m/%Y') if invoice.due_date else '-'),
            ]
            if invoice.payment_term:
                details.append(('Payment terms', invoice.payment_term.name))
            if invoice.project:
                details.append(('Project', invoice.project.code))

            story = self._header('Invoice', invoice.customer, details)
            rows = [
                [Paragraph(escape(item.description), self.styles['small']), f"{item.quantity:g}",
                 format_currency(item.unit_price), f"{item.discount_percentage:g}%",
                 f"{item.tax_rate:g}%", format_currency(item.total)]
                for item in invoice.items.all()
            ]
            story.append(self._items_table(
                ['Description', 'Qty', 'Unit price', 'Disc.', 'VAT', 'Total'], rows,
                [70 * mm, 15 * mm, 25 * mm, 15 * mm, 15 * mm, 35 * mm],
            ))
            story.append(Spacer(1, 5 * mm))
            totals = [['Taxable', format_currency(invoice.subtotal)], ['VAT', format_currency(invoice.tax_amount)]]
            if invoice.discount_amount:
                totals.append(['Discount', f"- {format_currency(invoice.discount_amount)}"])
            totals.append(['Total', format_currency(invoice.total)])
            story.append(self._totals_table(totals))
            if self.profile.iban:
                story += [Spacer(1, 8 * mm), Paragraph(f"Bank transfer to IBAN {self.profile.iban}",
                                                       self.styles['normal'])]
            if invoice.notes:
                story += [Spacer(1, 5 * mm)] + self._paragraphs(invoice.notes)

            self._build(path, f"Invoice {invoice.invoice_number}", story)
            logger.info(f"Invoice PDF generated: {path}")

            if upload:
                service = get_nextcloud_service()
                if service:
                    invoice.nextcloud_path = service.upload_invoice_issued(invoice, path)
                invoice.pdf_generated_at = timezone.now()
                invoice.save(update_fields=['nextcloud_path', 'pdf_generated_at', 'updated_at'])
            return path
        except Exception as e:
            logger.error(f"Error generating PDF for invoice {invoice.invoice_number}: {str(e)}")
            raise

    def generate_quotation_pdf(self, quotation, upload=True):
        try:
            path = self._output_path(quotation.number, quotation.date)
            details = [
                ('Quotation', quotation.number),
                ('Date', quotation.date.strftime('%d/%m/%Y')),
                ('Valid until', quotation.valid_until.strftime('%d/%m/%Y') if quotation.valid_until else '-'),
            ]
            if quotation.boards_quantity:
                details.append(('Boards', str(quotation.boards_quantity)))

            story = self._header(quotation.title, quotation.customer, details)
            if quotation.description:
                story += self._paragraphs(quotation.description) + [Spacer(1, 4 * mm)]

            rows = []
            for item in quotation.items.all():
                if item.item_type in item.HOURLY_TYPES:
                    qty = f"{item.hours or 0:g} h"
                else:
                    qty = f"{item.quantity:g}"
                rows.append([Paragraph(escape(item.description), self.styles['small']), item.get_item_type_display(),
                             qty, format_currency(item.unit_price), format_currency(item.total)])
            story.append(self._items_table(
                ['Description', 'Type', 'Qty', 'Unit price', 'Total'], rows,
                [65 * mm, 35 * mm, 20 * mm, 25 * mm, 30 * mm],
            ))
            story.append(Spacer(1, 5 * mm))
            totals = [['Subtotal', format_currency(quotation.subtotal)]]
            if quotation.discount_amount:
                totals.append([f"Discount ({quotation.discount_rate:g}%)",
                               f"- {format_currency(quotation.discount_amount)}"])
            totals += [[f"VAT ({quotation.tax_rate:g}%)", format_currency(quotation.tax_amount)],
                       ['Total', format_currency(quotation.total)]]
            story.append(self._totals_table(totals))
            if quotation.terms:
                story += [Spacer(1, 8 * mm), Paragraph('Terms and conditions', self.styles['heading'])]
                story += self._paragraphs(quotation.terms)

            self._build(path, f"Quotation {quotation.number}", story)
            logger.info(f"Quotation PDF generated: {path}")

            quotation.pdf_path = path
            quotation.pdf_generated_at = timezone.now()
            if upload:
                service = get_nextcloud_service()
                if service:
                    quotation.nextcloud_path = service.upload_quotation(quotation, path)
            quotation.save(update_fields=['pdf_path', 'pdf_generated_at', 'nextcloud_path', 'updated_at'])
            return path
        except Exception as e:
            logger.error(f"Error generating PDF for quotation {quotation.number}: {str(e)}")
            raise

    def generate_contract_pdf(self, contract, upload=True):
        try:
            path = self._output_path(contract.contract_number, contract.start_date or timezone.localdate())
            details = [
                ('Contract', contract.contract_number),
                ('Type', contract.get_type_display()),
                ('Start', contract.start_date.strftime('%d/%m/%Y') if contract.start_date else '-'),
                ('End', contract.end_date.strftime('%d/%m/%Y') if contract.end_date else '-'),
            ]
            if contract.contract_value is not None:
                details.append(('Value', format_currency(contract.contract_value, contract.currency)))

            story = self._header(contract.title, contract.customer, details)
            story += self._paragraphs(contract.terms or '')
            signatures = Table(
                [[self.profile.company_name or '', contract.customer.company_name],
                 ['', ''],
                 ['_______________________', '_______________________']],
                colWidths=[87 * mm, 87 * mm],
            )
            story += [Spacer(1, 15 * mm), signatures]

            self._build(path, f"Contract {contract.contract_number}", story)
            logger.info(f"Contract PDF generated: {path}")

            if upload:
                service = get_nextcloud_service()
                if service:
                    contract.nextcloud_path = service.upload_contract(contract, path)
                contract.pdf_generated_at = timezone.now()
                contract.save(update_fields=['nextcloud_path', 'pdf_generated_at', 'updated_at'])
            return path
        except Exception as e:
            logger.error(f"Error generating PDF for contract {contract.contract_number}: {str(e)}")
            raise
