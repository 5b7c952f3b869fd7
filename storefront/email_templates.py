"""
MJML Email Templates
Consultation emails use MJML for responsive, cross-client compatibility
"""

from typing import Optional

# Storefront theme colors - monochrome with a green accent
THEME = {
    "primary": "#000000",
    "background": "#f9fafb",
    "card_bg": "#ffffff",
    "text_primary": "#111827",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
    "success": "#16a34a",
    "success_light": "#dcfce7",
}

BRAND_NAME = "Minimalist"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="0px"
              padding="18px 40px"
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
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="22px" font-weight="700" letter-spacing="4px" color="{THEME['text_primary']}">
              {BRAND_NAME.upper()}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="16px 0 0 0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="{THEME['card_bg']}" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#9ca3af" padding="0">
              © {BRAND_NAME}. All rights reserved.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details_block(reference_number: str, consultation_label: str, date_label: str, time_label: str) -> str:
    return f"""
    <mj-text font-size="15px" color="{THEME['text_secondary']}" padding="16px 0"
      container-background-color="{THEME['background']}">
      <strong>Reference Number:</strong> {reference_number}<br/>
      <strong>Consultation:</strong> {consultation_label}<br/>
      <strong>Scheduled Date:</strong> {date_label}<br/>
      <strong>Scheduled Time:</strong> {time_label}
    </mj-text>
    """


def consultation_confirmation_template(
    name: str,
    reference_number: str,
    consultation_label: str,
    date_label: str,
    time_label: str,
    confirmation_url: Optional[str] = None,
) -> str:
    """Booking confirmation sent right after a verified payment"""
    content = f"""
    <mj-text>
      Dear {name},
    </mj-text>

    <mj-text>
      Your consultation has been successfully booked. Our expert will reach out
      at the scheduled time.
    </mj-text>

    {_details_block(reference_number, consultation_label, date_label, time_label)}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Please keep your reference number handy. We look forward to helping you!
    </mj-text>
    """

    return get_base_template(
        title="Consultation Confirmed!",
        preview_text=f"Consultation Confirmed - {reference_number}",
        content_sections=content,
        cta_url=confirmation_url,
        cta_label="View Booking" if confirmation_url else None,
    )


def consultation_reminder_template(
    name: str,
    reference_number: str,
    consultation_label: str,
    date_label: str,
    time_label: str,
    confirmation_url: Optional[str] = None,
) -> str:
    """Reminder sent ahead of the scheduled consultation"""
    content = f"""
    <mj-text>
      Hi {name},
    </mj-text>

    <mj-text>
      This is a friendly reminder about your upcoming consultation.
    </mj-text>

    {_details_block(reference_number, consultation_label, date_label, time_label)}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Have your current products and any photos of your concerns ready.
    </mj-text>
    """

    return get_base_template(
        title="Your Consultation Is Coming Up",
        preview_text=f"Reminder - {reference_number} on {date_label}",
        content_sections=content,
        cta_url=confirmation_url,
        cta_label="View Booking" if confirmation_url else None,
    )
