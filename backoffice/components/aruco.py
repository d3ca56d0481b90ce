"""
ArUco-style fiducial markers for component bins and reels
Uses PIL to draw a 4x4 marker with the component identity underneath
"""
import logging
import os
from html import escape

from django.conf import settings
from django.utils import timezone
from PIL import Image, ImageDraw, ImageFont

from .models import Component

logger = logging.getLogger(__name__)

ARUCO_SIZE = 200
MARKER_BITS = 4
TEXT_AREA_HEIGHT = 60
ARUCO_DIR = 'aruco'
CARDS_PER_PAGE = 9


def marker_pattern(component_id):
    """4x4 bit grid from the low 16 bits of the id, most significant bit first"""
    binary = format(component_id % 65536, '016b')
    return [
        [binary[row * MARKER_BITS + col] == '1' for col in range(MARKER_BITS)]
        for row in range(MARKER_BITS)
    ]


def _load_font(size):
    try:
        return ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', size)
    except (OSError, IOError):
        try:
            return ImageFont.truetype('arial.ttf', size)
        except (OSError, IOError):
            return ImageFont.load_default()


def render_marker(component_id, lines, size=ARUCO_SIZE):
    """Draw the marker plus up to three centred text lines; returns a PIL image"""
    cell = size / (MARKER_BITS + 2)
    img = Image.new('RGB', (size, size + TEXT_AREA_HEIGHT), color='white')
    draw = ImageDraw.Draw(img)

    # One cell wide black frame
    draw.rectangle([0, 0, size - 1, cell - 1], fill='black')
    draw.rectangle([0, size - cell, size - 1, size - 1], fill='black')
    draw.rectangle([0, 0, cell - 1, size - 1], fill='black')
    draw.rectangle([size - cell, 0, size - 1, size - 1], fill='black')

    for row, bits in enumerate(marker_pattern(component_id)):
        for col, bit in enumerate(bits):
            if bit:
                x1 = (col + 1) * cell
                y1 = (row + 1) * cell
                draw.rectangle([x1, y1, x1 + cell - 1, y1 + cell - 1], fill='black')

    font = _load_font(12)
    y = size + 5
    for text in lines[:3]:
        if not text:
            continue
        bbox = draw.textbbox((0, 0), text, font=font)
        x = (size - (bbox[2] - bbox[0])) // 2
        draw.text((x, y), text, fill='black', font=font)
        y += 15

    return img


class ArUcoService:

    def __init__(self, media_root=None):
        self.media_root = media_root or getattr(settings, 'MEDIA_ROOT', os.getenv('MEDIA_ROOT', 'media'))

    @staticmethod
    def code_for(component):
        return f"ARUCO-{component.id:06d}"

    def generate_for_component(self, component):
        """Assign the marker code, draw its image and store the relative path on the component"""
        code = self.code_for(component)
        relative_path = f"{ARUCO_DIR}/{code}.png"
        absolute_path = os.path.join(self.media_root, ARUCO_DIR, f"{code}.png")
        os.makedirs(os.path.dirname(absolute_path), exist_ok=True)

        lines = [code, component.sku[:20], (component.name or '')[:20]]
        img = render_marker(component.id, lines)
        try:
            img.save(absolute_path, format='PNG')
        finally:
            img.close()

        component.aruco_code = code
        component.aruco_image_path = relative_path
        component.aruco_generated_at = timezone.now()
        component.save(update_fields=['aruco_code', 'aruco_image_path', 'aruco_generated_at', 'updated_at'])

        logger.info(f"Generated ArUco marker {code} for component {component.sku}")
        return code

    def find_by_aruco_code(self, code):
        return Component.objects.filter(aruco_code=code).first()

    def generate_missing_aruco_codes(self):
        count = 0
        for component in Component.objects.filter(aruco_code__isnull=True):
            self.generate_for_component(component)
            count += 1
        return count

    def generate_print_sheet(self, component_ids):
        """HTML page laying out marker cards in a 3-column grid, 9 per A4 page"""
        components = list(
            Component.objects.filter(id__in=component_ids, aruco_code__isnull=False).order_by('name')
        )
        if not components:
            raise ValueError('No components with ArUco codes found')

        media_url = getattr(settings, 'MEDIA_URL', '/media/')
        parts = [
            '<!DOCTYPE html>',
            '<html><head><title>ArUco Codes</title>',
            '<style>',
            '@page { size: A4; margin: 10mm; }',
            'body { font-family: Arial, sans-serif; margin: 0; }',
            '.page { page-break-after: always; padding: 10mm; }',
            '.grid { display: grid; grid-template-columns: repeat(3, 1fr); gap: 10mm; }',
            '.aruco-card { border: 1px solid #ddd; padding: 5mm; text-align: center; break-inside: avoid; }',
            '.aruco-card img { width: 100%; max-width: 50mm; height: auto; }',
            '.info { margin-top: 3mm; font-size: 9pt; line-height: 1.3; }',
            '.info strong { display: block; font-size: 10pt; margin-bottom: 2mm; }',
            '</style></head><body>',
            '<div class="page"><h2 style="text-align: center;">Component ArUco Codes</h2><div class="grid">',
        ]
        for index, component in enumerate(components):
            if index and index % CARDS_PER_PAGE == 0:
                parts.append('</div></div><div class="page"><div class="grid">')
            parts.append(
                '<div class="aruco-card">'
                f'<img src="{media_url}{escape(component.aruco_image_path)}" alt="{escape(component.aruco_code)}">'
                '<div class="info">'
                f'<strong>{escape(component.aruco_code)}</strong>'
                f'{escape(component.sku)}<br>'
                f'{escape(component.manufacturer)}<br>'
                f'{escape(component.name)}'
                '</div></div>'
            )
        parts.append('</div></div></body></html>')
        return '\n'.join(parts)
