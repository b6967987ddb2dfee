"""
A4 contract PDF rendering with reportlab.

Layout is measured in millimetres from the top of the page; the canvas
origin (bottom-left) is handled by ContractPdfWriter.
"""
import base64
import io
import logging
import unicodedata
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from .contract import (
    ANNEXURE_B_EMPTY, FORM_TITLE_LINES, MERCHANT_PARTNERSHIP_TERMS, MISSING,
    ContractData, build_structured_contract, intro_lines,
)

logger = logging.getLogger(__name__)

MARGIN = 18
LINE_H = 5.5
SMALL_H = 5
HEAD_H = 7
ANNEXURE_A_ROW_H = 8
ANNEXURE_B_ROW_H = 7
LOGO_W, LOGO_H = 35, 12
SIGNATURE_W, SIGNATURE_H = 50, 22
MAX_TERMS_LINES = 80

# The standard Type 1 fonts only carry WinAnsi (cp1252) glyphs
PDF_TEXT_ENCODING = 'cp1252'
PDF_TEXT_REPLACEMENTS = {'₹': 'Rs.'}


class PdfRenderError(Exception):
    """Contract PDF could not be produced"""


@dataclass
class SignatureBlock:
    signer_name: str
    signature_data_url: str
    signed_at: Optional[datetime] = None


@dataclass
class ApprovalBlock:
    reference: str
    signatory: str
    approved_at: Optional[datetime] = None


def decode_data_url_image(data_url: str) -> Image.Image:
    """PIL image from a data:image/...;base64 URL"""
    if not data_url or not data_url.startswith('data:image/') or ',' not in data_url:
        raise PdfRenderError('Signature must be an image data URL')
    try:
        raw = base64.b64decode(data_url.split(',', 1)[1])
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (ValueError, OSError) as e:
        raise PdfRenderError(f'Invalid signature image: {str(e)}') from e
    return image


def _drawable(char):
    try:
        char.encode(PDF_TEXT_ENCODING)
    except UnicodeEncodeError:
        return False
    return True


def sanitize_pdf_text(value) -> str:
    """
    Reduce text to characters Helvetica can draw.

    The rupee sign becomes 'Rs.', accented letters lose their accent when the
    composed form is not drawable, and anything else (Devanagari, emoji) is
    dropped. Text that had content but loses all of it becomes '?'.
    """
    text = str(value or '')
    for char, replacement in PDF_TEXT_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    kept = []
    for char in text:
        if _drawable(char):
            kept.append(char)
        else:
            kept.extend(part for part in unicodedata.normalize('NFKD', char) if _drawable(part))
    cleaned = ''.join(kept)
    if text.strip() and not cleaned.strip():
        return '?'
    return cleaned


class ContractPdfWriter:
    """Top-down text cursor over a reportlab canvas"""

    def __init__(self, buffer):
        self.canvas = canvas.Canvas(buffer, pagesize=A4)
        self.page_w = A4[0] / mm
        self.page_h = A4[1] / mm
        self.content_w = self.page_w - MARGIN * 2
        self.y = MARGIN
        self.font = ('Helvetica', 10)
        self.set_font('Helvetica', 10)

    def set_font(self, name, size):
        self.font = (name, size)
        self.canvas.setFont(name, size)

    def check_new_page(self, need):
        if self.y + need > self.page_h - MARGIN:
            self.canvas.showPage()
            self.canvas.setFont(*self.font)
            self.y = MARGIN

    def text(self, value, x=MARGIN, y=None):
        y = self.y if y is None else y
        self.canvas.drawString(x * mm, (self.page_h - y) * mm, sanitize_pdf_text(value))

    def wrap(self, value, width):
        return simpleSplit(sanitize_pdf_text(value), self.font[0], self.font[1], width * mm)

    def wrapped(self, value, width=None, indent=0, line_h=SMALL_H):
        for line in self.wrap(value, width or self.content_w):
            self.check_new_page(line_h)
            self.text(line, MARGIN + indent)
            self.y += line_h

    def rect(self, x, top, w, h):
        self.canvas.rect(x * mm, (self.page_h - top - h) * mm, w * mm, h * mm)

    def image(self, reader, x, top, w, h):
        self.canvas.drawImage(reader, x * mm, (self.page_h - top - h) * mm, width=w * mm, height=h * mm,
                              preserveAspectRatio=True, mask='auto')

    def table(self, headers, rows, row_h, empty_text=None):
        col_w = self.content_w / len(headers)
        self.set_font('Helvetica-Bold', 9)
        for index, header in enumerate(headers):
            x = MARGIN + index * col_w
            self.rect(x, self.y - 4, col_w, row_h)
            self.text((self.wrap(header, col_w - 4) or [''])[0], x + 2, self.y + 0.5)
        self.y += row_h

        self.set_font('Helvetica', 9)
        for row in rows:
            self.check_new_page(row_h)
            for index, cell in enumerate(row):
                x = MARGIN + index * col_w
                self.rect(x, self.y - 4, col_w, row_h)
                self.text((self.wrap(cell, col_w - 4) or [MISSING])[0], x + 2, self.y + 0.5)
            self.y += row_h
        if not rows and empty_text:
            self.rect(MARGIN, self.y - 4, self.content_w, row_h)
            self.text(empty_text, MARGIN + 2, self.y + 0.5)
            self.y += row_h

    def save(self):
        self.canvas.save()


def _draw_logo(writer, logo):
    """logo may be a filesystem path, bytes or a file-like object"""
    try:
        source = io.BytesIO(logo) if isinstance(logo, (bytes, bytearray)) else logo
        writer.image(ImageReader(source), MARGIN, writer.y, LOGO_W, LOGO_H)
        writer.y += 16
    except (OSError, ValueError) as e:
        logger.warning(f"Contract logo skipped: {str(e)}")
        writer.y += 2


def _draw_approval(writer, approval: ApprovalBlock):
    writer.set_font('Helvetica-Bold', 16)
    writer.text('CONTRACT APPROVAL')
    writer.y += 10
    writer.set_font('Helvetica', 10)
    approved_at = approval.approved_at or datetime.now()
    for line in (
        f"Reference: Partner Agreement - {approval.reference or 'Store'}",
        f"Approved / Signed on: {approved_at.strftime('%d %B %Y, %I:%M %p')}",
        'Status: Approved',
        f"Signatory: {approval.signatory or MISSING}",
    ):
        writer.text(line)
        writer.y += LINE_H
    writer.y += 4


def _draw_signature(writer, signature: SignatureBlock):
    reader = ImageReader(decode_data_url_image(signature.signature_data_url))
    writer.y += 6
    if writer.y + SIGNATURE_H + 10 > writer.page_h - MARGIN:
        writer.canvas.showPage()
        writer.y = MARGIN
    writer.image(reader, MARGIN, writer.y, SIGNATURE_W, SIGNATURE_H)
    writer.set_font('Helvetica', 9)
    signed_at = signature.signed_at or datetime.now()
    writer.text(f"Signed by: {signature.signer_name or MISSING}", MARGIN, writer.y + SIGNATURE_H + 4)
    writer.text(f"Date: {signed_at.strftime('%d %b %Y')}", MARGIN, writer.y + SIGNATURE_H + 8)
    writer.y += SIGNATURE_H + 10


def layout_terms_lines(writer, terms_body):
    """Wrapped lines of the terms body, capped at MAX_TERMS_LINES"""
    lines = []
    for paragraph in (terms_body or '').split('\n'):
        lines.extend(writer.wrap(paragraph, writer.content_w) or [''])
    return lines[:MAX_TERMS_LINES]


def render_contract_pdf(data: ContractData, terms_body: str = MERCHANT_PARTNERSHIP_TERMS,
                        signature: Optional[SignatureBlock] = None,
                        approval: Optional[ApprovalBlock] = None,
                        logo=None) -> bytes:
    """
    Render the enrolment form as PDF bytes.

    Raises:
        PdfRenderError: when the signature image is invalid or drawing fails
    """
    contract = build_structured_contract(data, terms_body)
    buffer = io.BytesIO()
    writer = ContractPdfWriter(buffer)

    if logo:
        _draw_logo(writer, logo)
    if approval:
        _draw_approval(writer, approval)

    writer.set_font('Helvetica-Bold', 14)
    writer.text(FORM_TITLE_LINES[0])
    writer.text(FORM_TITLE_LINES[1], MARGIN, writer.y + 6)
    writer.y += 14

    writer.set_font('Helvetica', 10)
    for line in intro_lines(contract.intro):
        writer.check_new_page(LINE_H)
        writer.text(line)
        writer.y += LINE_H
    writer.y += 4

    writer.set_font('Helvetica-Bold', 10)
    writer.text('Definitions')
    writer.y += HEAD_H
    writer.set_font('Helvetica', 10)
    for definition in contract.definitions:
        writer.wrapped(f"{definition['term']}: {definition['meaning']}", writer.content_w - 2, indent=2)
        writer.y += 1
    writer.y += 3

    for section in contract.sections:
        writer.check_new_page(HEAD_H + 5)
        writer.set_font('Helvetica-Bold', 10)
        writer.text(section['title'])
        writer.y += HEAD_H
        writer.set_font('Helvetica', 10)
        for bullet in section.get('bullets', []):
            writer.wrapped('• ' + bullet, writer.content_w - 4, indent=4)
        for paragraph in section.get('paragraphs', []):
            writer.wrapped(paragraph)
        writer.y += 2

    writer.check_new_page(HEAD_H + 20)
    writer.set_font('Helvetica-Bold', 10)
    writer.text('Annexure A - Commission and Charges')
    writer.y += HEAD_H
    writer.set_font('Helvetica', 10)
    writer.wrapped(contract.annexureA['description'], line_h=LINE_H)
    writer.y += 2
    writer.table(contract.annexureA['table']['headers'], contract.annexureA['table']['rows'], ANNEXURE_A_ROW_H)
    writer.y += 4

    writer.check_new_page(HEAD_H + 15)
    writer.set_font('Helvetica-Bold', 10)
    writer.text(f"Annexure B - {'UPI Details' if contract.annexureB['isUPI'] else 'Bank Details'}")
    writer.y += HEAD_H
    writer.table(contract.annexureB['headers'], contract.annexureB['rows'], ANNEXURE_B_ROW_H, ANNEXURE_B_EMPTY)
    writer.y += 4

    writer.check_new_page(12)
    writer.set_font('Helvetica-Oblique', 10)
    writer.wrapped(contract.certification)
    writer.y += 4

    writer.set_font('Helvetica', 10)
    for line in layout_terms_lines(writer, contract.termsBody):
        writer.check_new_page(SMALL_H)
        writer.text(line)
        writer.y += SMALL_H

    if signature:
        _draw_signature(writer, signature)

    try:
        writer.save()
    except (OSError, ValueError) as e:
        raise PdfRenderError(str(e)) from e
    return buffer.getvalue()
