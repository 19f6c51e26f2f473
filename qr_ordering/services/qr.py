"""Order QR codes. The payload is the bare order id the cashier scans."""

from io import BytesIO

import qrcode


def order_qr_png(order_id: str, box_size: int = 8, border: int = 2) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(order_id)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buff = BytesIO()
    img.save(buff, format="PNG")
    return buff.getvalue()
