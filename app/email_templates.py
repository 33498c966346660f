"""
MJML email templates for booking notifications
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

THEME = {
    "primary": "#2563eb",
    "primary_light": "#dbeafe",
    "background": "#f1f5f9",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML wrapper shared by all booking emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 40px 40px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="40px 40px 24px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}" padding="0">
              You received this email because an appointment was booked with this address.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_row(label: str, value) -> str:
    return f"""
    <tr>
      <td style="padding: 6px 0; color: {THEME['text_muted']};">{label}</td>
      <td style="padding: 6px 0; color: {THEME['text_primary']}; font-weight: 600;">{escape(str(value))}</td>
    </tr>
    """


def appointment_confirmation_template(
    patient_name: str,
    doctor_name: str,
    provider_id: str,
    serial_no: int,
    date: str,
    slot_time: str,
    location_name: str,
) -> str:
    """Confirmation sent to the requester after a successful booking"""
    rows = "".join(
        [
            _detail_row("Serial No.", serial_no),
            _detail_row("Doctor", f"Dr. {doctor_name}"),
            _detail_row("Date", date),
            _detail_row("Time", slot_time),
            _detail_row("Location", location_name),
        ]
    )
    content = f"""
    <mj-text>
      Hi {escape(patient_name)},
    </mj-text>

    <mj-text>
      Your appointment is booked. Please arrive before your slot starts and keep your
      serial number handy.
    </mj-text>

    <mj-table padding="8px 0 0 0" font-size="15px">
      {rows}
    </mj-table>
    """

    return get_base_template(
        title="Appointment Confirmed",
        preview_text=f"Serial {serial_no} with Dr. {escape(doctor_name)} on {date}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/doctor/{provider_id}",
        cta_label="View Doctor Profile",
    )
