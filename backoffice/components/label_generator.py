"""
Local SKU label generator for storage bins
Uses PIL/Pillow and python-barcode (Code128)
"""
import base64
import io
import logging
from typing import Optional

import barcode
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)


def _fonts():
    try:
        return (
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf', 16),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 12),
        )
    except (OSError, IOError):
        try:
            return ImageFont.truetype('arial.ttf', 16), ImageFont.truetype('arial.ttf', 12)
        except (OSError, IOError):
            return ImageFont.load_default(), ImageFont.load_default()


def _centered(draw, y, text, font, width):
    bbox = draw.textbbox((0, 0), text, font=font)
    draw.text(((width - (bbox[2] - bbox[0])) // 2, y), text, fill='black', font=font)


def render_sku_label(
    sku: str,
    name: str,
    storage_location: Optional[str] = None,
    width: int = 400,
    height: int = 200,
) -> Image.Image:
    """
    Draw a bin label: component name on top, Code128 of the SKU in the middle,
    SKU text and storage location underneath.
    """
    max_name_length = 32
    if len(name) > max_name_length:
        name = name[:max_name_length] + '...'

    img = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(img)
    font_large, font_small = _fonts()
    margin = 10

    _centered(draw, 8, name, font_large, width)
    barcode_y = 32
    available_height = height - barcode_y - 45

    try:
        code128 = barcode.get_barcode_class('code128')
        barcode_img = code128(sku, writer=ImageWriter()).render({
            'write_text': False,
            'module_width': 0.3,
            'module_height': 15.0,
            'quiet_zone': 2.0,
            'background': 'white',
            'foreground': 'black',
        })

        bc_width, bc_height = barcode_img.size
        target_width = width - 2 * margin
        scale = target_width / bc_width
        target_height = int(bc_height * scale)
        if target_height > available_height:
            scale = available_height / bc_height
            target_height = available_height
            target_width = int(bc_width * scale)

        barcode_img = barcode_img.resize((target_width, target_height), Image.Resampling.BILINEAR)
        img.paste(barcode_img, ((width - target_width) // 2, barcode_y))
        text_y = barcode_y + target_height + 4
    except Exception as e:
        logger.error(f"Barcode generation failed for '{sku}': {str(e)}")
        _centered(draw, barcode_y, f'SKU: {sku}', font_small, width)
        text_y = barcode_y + 20

    _centered(draw, text_y, sku, font_small, width)
    if storage_location:
        _centered(draw, text_y + 16, f'Loc: {storage_location}', font_small, width)

    return img


def generate_sku_label(component, **kwargs) -> bytes:
    """PNG bytes of the label for a component"""
    img = render_sku_label(component.sku, component.name, component.storage_location, **kwargs)
    buffer = io.BytesIO()
    try:
        img.save(buffer, format='PNG', optimize=False, compress_level=1)
        return buffer.getvalue()
    finally:
        img.close()
        buffer.close()


def generate_sku_label_data_url(component, **kwargs) -> str:
    encoded = base64.b64encode(generate_sku_label(component, **kwargs)).decode('utf-8')
    return f'data:image/png;base64,{encoded}'
