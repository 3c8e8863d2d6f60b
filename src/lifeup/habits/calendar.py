"""iCalendar reminder events for habits."""

from datetime import datetime, time, timedelta, timezone

from lifeup.models.habit import Habit

DEFAULT_REMINDER = time(9, 0)
EVENT_DURATION = timedelta(minutes=15)
ALARM_LEAD = "-PT5M"


def _escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _utc_stamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def next_reminder_start(habit: Habit, now: datetime | None = None) -> datetime:
    """Next occurrence of the habit's reminder time (default 09:00).

    Rolls over to tomorrow when today's time has already passed.
    """
    now = now or datetime.now().astimezone()
    if habit.reminder_time:
        hour, minute = (int(part) for part in habit.reminder_time.split(":"))
        at = time(hour, minute)
    else:
        at = DEFAULT_REMINDER
    start = now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    if start < now:
        start += timedelta(days=1)
    return start


def reminder_event(habit: Habit, now: datetime | None = None) -> str:
    """Build a VCALENDAR with one 15-minute event and a display alarm 5 minutes before."""
    now = now or datetime.now().astimezone()
    start = next_reminder_start(habit, now)
    end = start + EVENT_DURATION
    summary = _escape(f"LifeUp check-in: {habit.name}")
    description = _escape(f"Keep going!\nHabit: {habit.name}")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//LifeUp//Habit Reminder//EN",
        "BEGIN:VEVENT",
        f"UID:{habit.id}-{start.strftime('%Y%m%d')}@lifeup",
        f"DTSTAMP:{_utc_stamp(now)}",
        f"DTSTART:{_utc_stamp(start)}",
        f"DTEND:{_utc_stamp(end)}",
        f"SUMMARY:{summary}",
        f"DESCRIPTION:{description}",
        "BEGIN:VALARM",
        f"TRIGGER:{ALARM_LEAD}",
        "ACTION:DISPLAY",
        "DESCRIPTION:Reminder",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"
