"""Email bodies for booking notifications.

Every message carries a plain-text body and an HTML alternative. Values
typed by patients are escaped before they go into the HTML part.
"""

import json
from email.message import EmailMessage
from html import escape

from backend.core.config import MailSettings
from backend.models.appointment import Appointment


NOT_PROVIDED = 'N/A'
DEFAULT_CONCERN = 'your therapy session'


def _detail_rows(appointment: Appointment) -> list[tuple[str, str]]:
    return [
        ('Name', appointment.patient_name),
        ('Date', appointment.appointment_date),
        ('Time', appointment.appointment_time),
        ('Phone', appointment.patient_phone or NOT_PROVIDED),
        ('Aadhaar', appointment.patient_adhaar or NOT_PROVIDED),
        ('Email', appointment.patient_email or NOT_PROVIDED),
        ('Concern', appointment.concern or NOT_PROVIDED),
    ]


def build_admin_message(appointment: Appointment, settings: MailSettings) -> EmailMessage:
    rows = _detail_rows(appointment)
    record = json.dumps(appointment.to_document(), indent=2)

    text_lines = ['New Appointment Booking Received!', '', 'Details:', '--------']
    text_lines += [f'{label}: {value}' for label, value in rows]
    text_lines += ['', 'Full JSON Data:', record]

    html_rows = ''.join(f'<p><strong>{label}:</strong> {escape(value)}</p>' for label, value in rows)
    html_body = (
        '<h2>New Appointment Booking Received!</h2>'
        f'{html_rows}'
        '<br/><h3>Full JSON Data:</h3>'
        f'<pre style="background: #f4f4f4; padding: 10px; border-radius: 5px;">{escape(record)}</pre>'
    )

    message = EmailMessage()
    message['Subject'] = f'New Appointment: {appointment.patient_name} - {appointment.appointment_date}'
    message['From'] = settings.user
    message['To'] = settings.admin_recipient
    message.set_content('\n'.join(text_lines))
    message.add_alternative(html_body, subtype='html')
    return message


def build_patient_message(appointment: Appointment, settings: MailSettings) -> EmailMessage:
    rows = [
        ('Date', appointment.appointment_date),
        ('Time', appointment.appointment_time),
    ]
    rows += [
        (label, value)
        for label, value in (
            ('Phone', appointment.patient_phone),
            ('Aadhaar', appointment.patient_adhaar),
            ('Concern', appointment.concern),
        )
        if value
    ]

    text_lines = [f'Hi {appointment.patient_name},', '', 'Your appointment is confirmed for:', '']
    text_lines += [f'{label}: {value}' for label, value in rows]

    html_rows = ''.join(
        f'<p style="margin: 10px 0;"><strong>{label}:</strong> {escape(value)}</p>' for label, value in rows
    )
    html_parts = [
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">',
        f'<h2 style="color: #2c3e50;">Hi {escape(appointment.patient_name)},</h2>',
        '<p style="font-size: 16px; color: #34495e;">Your appointment is confirmed for:</p>',
        f'<div style="background-color: #f8f9fa; padding: 15px; border-radius: 5px; margin: 20px 0;">{html_rows}</div>',
    ]

    if settings.contact_number:
        topic = appointment.concern or DEFAULT_CONCERN
        contact_line = (
            f'I am happy to coordinate with you. Please send me "Hi, I had made a session booked '
            f'regarding {topic}." on this WhatsApp number:'
        )
        text_lines += ['', contact_line, settings.contact_number]
        html_parts.append(
            f'<p style="font-size: 16px; color: #34495e; margin-top: 20px;">{escape(contact_line)}<br>'
            f'<strong>{escape(settings.contact_number)}</strong></p>'
        )

    text_lines += ['', 'Happy to assist you!']
    html_parts.append('<p style="font-size: 16px; color: #2c3e50; font-weight: bold; margin-top: 20px;">Happy to assist you!</p>')
    html_parts.append('</div>')

    message = EmailMessage()
    message['Subject'] = f'Appointment Confirmation - {appointment.appointment_date}'
    message['From'] = settings.user
    message['To'] = appointment.patient_email
    message.set_content('\n'.join(text_lines))
    message.add_alternative(''.join(html_parts), subtype='html')
    return message
