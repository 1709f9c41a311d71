"""
QR code generation service
"""

import base64
import io

import qrcode


class QRService:
    """Service for rendering pass codes as QR images"""

    @staticmethod
    def generate_pass_qr(code: str, format: str = 'PNG') -> bytes:
        """Render a pass code as a QR image"""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(code)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format=format)

        return buffer.getvalue()

    @staticmethod
    def to_data_url(code: str) -> str:
        """PNG data URL for embedding a pass QR code in an HTML email"""
        png = QRService.generate_pass_qr(code)
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
