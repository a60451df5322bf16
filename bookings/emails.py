"""
Subject and body rendering for booking emails.

Companies can override subject, intro and closing text per email type;
anything they leave empty falls back to the Italian defaults below. Dates
are stored in naive UTC and shown in DISPLAY_TIMEZONE.
"""
from datetime import timezone
from zoneinfo import ZoneInfo

from flask import current_app, render_template

from models.email_template import EmailTemplate, EMAIL_BOOKING_CONFIRMATION, EMAIL_BOOKING_REMINDER

WEEKDAYS_IT = ["lunedì", "martedì", "mercoledì", "giovedì", "venerdì", "sabato", "domenica"]
MONTHS_IT = [
    "gennaio", "febbraio", "marzo", "aprile", "maggio", "giugno",
    "luglio", "agosto", "settembre", "ottobre", "novembre", "dicembre",
]

DEFAULT_TEXTS = {
    EMAIL_BOOKING_CONFIRMATION: {
        "subject": "Conferma prenotazione: {title}",
        "intro_text": "Ciao {first_name},\n\nLa tua prenotazione è stata confermata con successo!",
        "closing_text": "Ti aspettiamo! Grazie per il tuo impegno nel volontariato.\n\nIl team Bravo!",
    },
    EMAIL_BOOKING_REMINDER: {
        "subject": "Promemoria: {title} - Domani!",
        "intro_text": "Ciao {first_name},\n\nTi ricordiamo che domani hai un'esperienza di volontariato!",
        "closing_text": "Non vediamo l'ora di vederti! Grazie per il tuo impegno.\n\nIl team Bravo!",
    },
}

BODY_TEMPLATES = {
    EMAIL_BOOKING_CONFIRMATION: "emails/booking_confirmation.html",
    EMAIL_BOOKING_REMINDER: "emails/booking_reminder.html",
}


def _local(dt):
    tz = ZoneInfo(current_app.config.get("DISPLAY_TIMEZONE", "Europe/Rome"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def format_date_it(dt) -> str:
    local = _local(dt)
    return f"{WEEKDAYS_IT[local.weekday()]} {local.day} {MONTHS_IT[local.month - 1]} {local.year}"


def format_time_it(dt) -> str:
    return _local(dt).strftime("%H:%M")


def resolve_template(company_id, template_type: str, profile, experience) -> dict:
    """Company override first, Italian default for every empty field."""
    row = None
    if company_id is not None:
        row = EmailTemplate.query.filter_by(company_id=company_id, template_type=template_type).first()

    values = {
        "title": experience.title if experience else "",
        "first_name": (profile.first_name or "") if profile else "",
    }
    defaults = DEFAULT_TEXTS[template_type]

    resolved = {}
    for field in ("subject", "intro_text", "closing_text"):
        custom = getattr(row, field, None) if row else None
        resolved[field] = custom or defaults[field].format(**values)
    return resolved


def render_booking_email(template_type: str, profile, experience, date) -> dict:
    """Returns {"subject", "html"} ready for the mail transport."""
    texts = resolve_template(profile.company_id, template_type, profile, experience)
    html = render_template(
        BODY_TEMPLATES[template_type],
        intro_text=texts["intro_text"],
        closing_text=texts["closing_text"],
        experience=experience,
        date_label=format_date_it(date.start_datetime),
        start_time=format_time_it(date.start_datetime),
        end_time=format_time_it(date.end_datetime),
    )
    return {"subject": texts["subject"], "html": html}
