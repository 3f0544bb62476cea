"""Receipt rendering: JSON view, PDF certificate and HTML page."""

import io
import logging
from typing import List, Optional

import httpx
from jinja2 import DictLoader, Environment, select_autoescape
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from turjman.config import Settings
from turjman.core.catalog import find_service
from turjman.core.explorer import build_explorer_tx_url, build_qr_url
from turjman.schemas.receipt import Receipt, ReceiptView

logger = logging.getLogger(__name__)

TITLE = "Smart Turjman — Verified Transaction Receipt"

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_SIZE = 11

PAGE_WIDTH, PAGE_HEIGHT = A4
LEFT_MARGIN = 20
RIGHT_MARGIN = 45
CONTENT_WIDTH = PAGE_WIDTH - LEFT_MARGIN - RIGHT_MARGIN
LABEL_WIDTH = 160
VALUE_X = LEFT_MARGIN + LABEL_WIDTH
VALUE_WIDTH = CONTENT_WIDTH - LABEL_WIDTH
FIELD_LINE_HEIGHT = 14
FIELD_SPACING = 16
QR_SIZE = 180

TEMPLATES = {
    "receipt.html": """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Receipt {{ view.tx_hash }}</title>
  <style>
    body { font-family: system-ui, sans-serif; max-width: 720px; margin: 2rem auto; color: #111; }
    dt { font-weight: 600; margin-top: .75rem; }
    dd { margin: 0; word-break: break-all; }
    .status { display: inline-block; padding: .1rem .5rem; border-radius: 4px; background: #e6f4ea; }
    .status.Failed { background: #fde7e9; }
    .status.Pending { background: #fff4ce; }
  </style>
</head>
<body>
  <h1>{{ title }}</h1>
  <dl>
    <dt>Transaction Hash</dt><dd>{{ view.tx_hash }}</dd>
    <dt>Service</dt><dd>{{ view.service }}</dd>
    <dt>Partner</dt><dd>{{ view.partner }}</dd>
    <dt>Amount</dt><dd>{{ view.amount }}</dd>
    <dt>Network</dt><dd>{{ view.network }}</dd>
    <dt>Status</dt><dd><span class="status {{ view.status }}">{{ view.status }}</span></dd>
  </dl>
  <p><a href="{{ view.explorer_url }}" target="_blank" rel="noopener">View on ArcScan</a></p>
  <p><a href="{{ view.pdf_url }}">Download PDF</a></p>
  <img src="{{ view.qr_url }}" alt="QR code linking to the explorer" width="180" height="180">
</body>
</html>
""",
    "message.html": """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>{{ title }}</title></head>
<body style="font-family: system-ui, sans-serif; max-width: 720px; margin: 2rem auto;">
  <h1>{{ title }}</h1>
  <p>{{ message }}</p>
</body>
</html>
""",
}

env = Environment(loader=DictLoader(TEMPLATES), autoescape=select_autoescape(["html"]))


def build_receipt_view(receipt: Receipt, canonical_tx: str, settings: Settings) -> ReceiptView:
    """Public view of a stored receipt, falling back to catalog and defaults."""
    service = find_service(receipt.service_id)
    partner = (
        receipt.partner
        or (service.partner_name if service else None)
        or settings.DEFAULT_PARTNER
    )
    extra = receipt.model_extra or {}
    service_label = (
        receipt.service_label
        or extra.get("serviceName")
        or receipt.service
        or receipt.service_id
        or "N/A"
    )
    explorer_url = build_explorer_tx_url(canonical_tx, settings.ARC_EXPLORER_BASE)
    amount = receipt.amount_usdc or "1.00"

    return ReceiptView(
        tx_hash=canonical_tx,
        service=service_label,
        partner=partner,
        amount=f"{amount} USDC",
        network=receipt.network or settings.DEFAULT_NETWORK,
        status=receipt.status.value,
        explorer_url=explorer_url,
        qr_url=build_qr_url(explorer_url, settings.QR_API_BASE),
        pdf_url=f"/api/receipts/{canonical_tx}?format=pdf",
    )


def wrap_value(
    text: Optional[str],
    max_width: float,
    font_name: str = FONT,
    font_size: float = FONT_SIZE
) -> List[str]:
    """
    Wrap ``text`` into lines no wider than ``max_width`` points.

    Words wider than a line are broken between characters.
    """
    words = (text or "N/A").split()
    if not words:
        return ["N/A"]

    def width(value: str) -> float:
        return stringWidth(value, font_name, font_size)

    def split_long_word(word: str) -> List[str]:
        segments = []
        current = ""
        for char in word:
            candidate = current + char
            if current and width(candidate) > max_width:
                segments.append(current)
                current = char
            else:
                current = candidate
        if current:
            segments.append(current)
        return segments

    lines: List[str] = []
    current_line = ""
    for word in words:
        for index, segment in enumerate(split_long_word(word)):
            needs_space = bool(current_line) and index == 0
            candidate = f"{current_line} {segment}" if needs_space else f"{current_line}{segment}"
            if current_line and width(candidate) > max_width:
                lines.append(current_line)
                current_line = segment
            else:
                current_line = candidate

    if current_line:
        lines.append(current_line)
    return lines


def build_receipt_pdf(view: ReceiptView, qr_png: Optional[bytes] = None) -> bytes:
    """
    Render a one-page A4 receipt.

    ``qr_png`` is embedded below the fields when given; an image that cannot
    be decoded is left out and the rest of the page is still produced.
    """
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Receipt {view.tx_hash}")

    def draw(label: str, value: str, y: float) -> float:
        pdf.setFont(FONT_BOLD, FONT_SIZE)
        pdf.drawString(LEFT_MARGIN, y, f"{label}:")
        pdf.setFont(FONT, FONT_SIZE)
        lines = wrap_value(value, VALUE_WIDTH)
        for idx, line in enumerate(lines):
            pdf.drawString(VALUE_X, y - idx * FIELD_LINE_HEIGHT, line)
        return y - (len(lines) - 1) * FIELD_LINE_HEIGHT - FIELD_SPACING

    pdf.setFont(FONT_BOLD, 14)
    pdf.drawString(LEFT_MARGIN, 780, TITLE)

    cursor = 740
    cursor = draw("Transaction Hash", view.tx_hash, cursor)
    cursor = draw("Service", view.service, cursor)
    cursor = draw("Partner", view.partner, cursor)
    cursor = draw("Amount", view.amount, cursor)
    cursor = draw("Network", view.network, cursor)
    cursor = draw("Status", view.status, cursor)
    cursor -= 20
    cursor = draw("View on ArcScan", view.explorer_url, cursor)
    cursor -= 22

    if qr_png:
        try:
            image = ImageReader(io.BytesIO(qr_png))
            pdf.drawImage(image, 50, cursor - QR_SIZE - 10, width=QR_SIZE, height=QR_SIZE)
        except Exception as e:
            logger.warning(f"QR embed failed for {view.tx_hash}; continuing without it: {e}")

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def render_receipt_html(view: ReceiptView) -> str:
    return env.get_template("receipt.html").render(title=TITLE, view=view)


async def fetch_qr_png(
    url: str,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Optional[bytes]:
    """Fetch the QR image; None if the endpoint is unreachable or answers non-2xx."""
    try:
        async with httpx.AsyncClient(
            timeout=timeout, transport=transport, follow_redirects=True
        ) as client:
            resp = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning(f"QR fetch failed: {e}")
        return None

    if not resp.is_success:
        logger.warning(f"QR fetch failed with status {resp.status_code}")
        return None
    return resp.content


class ReceiptPresenter:
    """Renders stored receipts for the receipts endpoints."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    def view(self, receipt: Receipt, canonical_tx: str) -> ReceiptView:
        return build_receipt_view(receipt, canonical_tx, self.settings)

    async def pdf(self, view: ReceiptView) -> bytes:
        qr_png = await fetch_qr_png(view.qr_url, self.settings.QR_FETCH_TIMEOUT, self.transport)
        return build_receipt_pdf(view, qr_png)

    def html(self, view: ReceiptView) -> str:
        return render_receipt_html(view)

    def message_html(self, title: str, message: str) -> str:
        return env.get_template("message.html").render(title=title, message=message)
