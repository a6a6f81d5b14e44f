"""Reminder email content in English and Persian (right-to-left)."""

from html import escape

from reminder_service.config import settings

PRIORITY_COLORS = {
    "low": "#10B981",
    "medium": "#F59E0B",
    "high": "#EF4444",
    "urgent": "#DC2626",
}

RTL_LANGUAGES = frozenset({"fa"})

_STRINGS = {
    "en": {
        "greeting": "Hello {name}",
        "your_reminder": "Your reminder:",
        "scheduled": "Scheduled time:",
        "manage": "Visit your dashboard to manage your reminders.",
        "dashboard": "View Dashboard",
        "settings": "Notification Settings",
        "footer": "Smart Reminder System",
        "test_title": "Test Notification",
        "test_body": "This is a test message to ensure notifications are working properly.",
    },
    "fa": {
        "greeting": "سلام {name}",
        "your_reminder": "یادآوری شما:",
        "scheduled": "زمان برنامه‌ریزی شده:",
        "manage": "برای مدیریت یادآوری‌های خود به داشبورد مراجعه کنید.",
        "dashboard": "مشاهده داشبورد",
        "settings": "تنظیمات اعلان‌ها",
        "footer": "سیستم یادآوری هوشمند",
        "test_title": "تست اعلان",
        "test_body": "این یک پیام تست است تا اطمینان حاصل شود که اعلان‌ها به درستی کار می‌کنند.",
    },
}


def strings_for(language: str | None) -> dict[str, str]:
    return _STRINGS.get(language or "en", _STRINGS["en"])


def localized_test_notification(language: str | None) -> tuple[str, str]:
    """(title, body) of the localized test notification."""
    s = strings_for(language)
    return s["test_title"], s["test_body"]


def _base_url() -> str:
    return settings.base_url.rstrip("/")


def _format_time(reminder) -> str:
    return f"{reminder.scheduled_time:%Y-%m-%d %H:%M} UTC"


def render_subject(reminder) -> str:
    return f"Reminder: {reminder.title}"


def render_text(reminder, user) -> str:
    s = strings_for(user.language)
    parts = [
        s["greeting"].format(name=user.display_name) + ",",
        "",
        s["your_reminder"],
        reminder.title,
        "",
    ]
    if reminder.description:
        parts += [reminder.description, ""]
    parts += [
        f"{s['scheduled']} {_format_time(reminder)}",
        "",
        s["manage"],
        "",
        f"{_base_url()}/dashboard",
        "",
        "---",
        s["footer"],
    ]
    return "\n".join(parts)


def render_html(reminder, user) -> str:
    s = strings_for(user.language)
    rtl = (user.language or "en") in RTL_LANGUAGES
    color = PRIORITY_COLORS.get(reminder.priority, PRIORITY_COLORS["medium"])
    font = "Tahoma, Arial" if rtl else "Arial, sans-serif"
    badge_float = "left" if rtl else "right"
    description = (
        f'<div class="reminder-description">{escape(reminder.description)}</div>' if reminder.description else ""
    )
    query = f"?reminder={reminder.id}" if reminder.id is not None else ""
    tags = ""
    if reminder.tags:
        spans = "".join(f'<span class="tag">#{escape(t)}</span>' for t in reminder.tags)
        tags = f'<div class="tags">{spans}</div>'
    return f"""<!DOCTYPE html>
<html dir="{'rtl' if rtl else 'ltr'}" lang="{escape(user.language or 'en')}">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Reminder</title>
    <style>
        body {{ font-family: {font}; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f4f4f4; }}
        .container {{ background: white; padding: 30px; border-radius: 10px; }}
        .reminder-card {{ background: #f8fafc; border: 2px solid {color}; border-radius: 8px; padding: 20px; margin: 20px 0; }}
        .reminder-title {{ font-size: 20px; font-weight: bold; color: #1f2937; margin-bottom: 10px; }}
        .reminder-description {{ color: #6b7280; margin-bottom: 15px; }}
        .reminder-time {{ background: {color}; color: white; padding: 8px 12px; border-radius: 6px; display: inline-block; font-weight: bold; }}
        .priority-badge {{ background: {color}; color: white; padding: 4px 8px; border-radius: 4px; font-size: 12px; text-transform: uppercase; float: {badge_float}; }}
        .button {{ display: inline-block; background: #4F46E5; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; margin: 20px 0; font-weight: bold; }}
        .footer {{ text-align: center; margin-top: 30px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        .tag {{ background: #e5e7eb; color: #374151; padding: 2px 6px; border-radius: 4px; font-size: 12px; margin: 2px; display: inline-block; }}
    </style>
</head>
<body>
    <div class="container">
        <p>{escape(s['greeting'].format(name=user.display_name))}!</p>
        <div class="reminder-card">
            <div class="priority-badge">{escape(reminder.priority)}</div>
            <div class="reminder-title">{escape(reminder.title)}</div>
            {description}
            <div class="reminder-time">{escape(s['scheduled'])} {_format_time(reminder)}</div>
            {tags}
        </div>
        <div style="text-align: center;">
            <a href="{_base_url()}/dashboard{query}" class="button">{escape(s['dashboard'])}</a>
        </div>
        <div class="footer">
            <p>{escape(s['footer'])}</p>
            <p><a href="{_base_url()}/dashboard/settings">{escape(s['settings'])}</a></p>
        </div>
    </div>
</body>
</html>"""


def render_reminder_email(reminder, user) -> tuple[str, str, str]:
    """(subject, text, html) for a reminder notification."""
    return render_subject(reminder), render_text(reminder, user), render_html(reminder, user)
