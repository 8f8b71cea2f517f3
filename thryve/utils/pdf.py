"""
Enrollment form PDF.

When ENROLLMENT_FORM_TEMPLATE points at a fillable PDF its text fields are
filled in place with PyPDF2; otherwise an equivalent single-page form is
drawn with reportlab.
"""

import io
import os
import re
import logging

from flask import current_app
from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

from .dates import format_date

logger = logging.getLogger(__name__)


def enrollment_form_fields(enrollment):
    """Map an enrollment onto the field names used by the paper form."""
    return {
        'STUDENT NAME': enrollment.student_name or '',
        'ADDRESS': enrollment.address or '',
        'CITYSTATEZIP': enrollment.city_state_zip or '',
        'PHONE NUMBERS H': enrollment.phone_home or '',
        'PHONE NUMBERS C': enrollment.phone_cell or '',
        'EMAIL ADDRESS': enrollment.email or '',
        'SOCIAL SECURITY': enrollment.social_security or '',
        'DATE OF ADMISSION': format_date(enrollment.created_at),
        'Student Signature': enrollment.student_signature or '',
        'Date': format_date(enrollment.student_signature_date),
        'Program DirectorDirector Signature': enrollment.director_signature or '',
        'Date1': format_date(enrollment.director_signature_date),
    }


def enrollment_pdf_filename(enrollment):
    student = re.sub(r'\s+', '-', (enrollment.student_name or 'student').strip())
    return f"enrollment-{student}-{enrollment.id}.pdf"


def generate_enrollment_pdf(enrollment):
    """Return the filled enrollment form as PDF bytes"""
    fields = enrollment_form_fields(enrollment)
    template = current_app.config.get('ENROLLMENT_FORM_TEMPLATE')

    if template:
        if not os.path.exists(template):
            raise FileNotFoundError(f"Enrollment form template not found: {template}")
        return _fill_template(template, fields)

    return _render_summary(enrollment, fields)


def _fill_template(template, fields):
    reader = PdfReader(template)
    writer = PdfWriter()
    writer.append(reader)

    available = set((reader.get_fields() or {}).keys())
    missing = [name for name in fields if name not in available]
    if missing:
        logger.warning(f"Enrollment form template is missing fields: {missing}")

    values = {name: value for name, value in fields.items() if value and name in available}
    for page in writer.pages:
        writer.update_page_form_field_values(page, values)

    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()


def _render_summary(enrollment, fields):
    output = io.BytesIO()
    pdf = canvas.Canvas(output, pagesize=letter)
    width, height = letter

    pdf.setTitle(f"Enrollment - {enrollment.student_name}")
    pdf.setFont('Helvetica-Bold', 16)
    pdf.drawString(inch, height - inch, 'Thryve.Today Training Center - Enrollment Agreement')

    y = height - 1.5 * inch
    if enrollment.course:
        pdf.setFont('Helvetica', 12)
        pdf.drawString(inch, y, f"Program: {enrollment.course.name}")
        y -= 0.4 * inch

    for label, value in fields.items():
        pdf.setFont('Helvetica-Bold', 10)
        pdf.drawString(inch, y, f"{label}:")
        pdf.setFont('Helvetica', 10)
        pdf.drawString(3.5 * inch, y, value)
        y -= 0.3 * inch

    pdf.showPage()
    pdf.save()
    return output.getvalue()
