"""QR code encoding to embedded PNG images."""

import base64
import io

import qrcode
from PIL import Image
from pydantic import BaseModel, Field

_ERROR_CORRECTION = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}


class QROptions(BaseModel):
    """Rendering options for QR codes."""

    size: int = Field(default=400, gt=0, description="Output width and height in pixels")
    margin: int = Field(default=1, ge=0, description="Quiet zone width in modules")
    foreground: str = Field(default="#111827", description="Module color")
    background: str = Field(default="transparent", description="Background color or 'transparent'")
    error_correction: str = Field(default="M", pattern="^[LMQH]$")


def encode(text: str, options: QROptions | None = None) -> str:
    """Encode ``text`` as a QR code PNG data URI."""
    options = options or QROptions()

    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION[options.error_correction],
        box_size=1,
        border=options.margin,
    )
    qr.add_data(text)
    qr.make(fit=True)

    modules = qr.modules_count + 2 * options.margin
    qr.box_size = max(1, options.size // modules)

    img = qr.make_image(fill_color=options.foreground, back_color=options.background)
    img = img.get_image().convert("RGBA")
    if img.size != (options.size, options.size):
        img = img.resize((options.size, options.size), Image.NEAREST)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
