from datetime import datetime, timedelta

from curator.config import AppConfig, WEEKDAYS


def next_run(config: AppConfig, now: datetime) -> datetime:
    """
    First scheduled trigger strictly after now, in now's timezone.
    Weekly schedules fire on schedule_day; daily ones every day.
    """
    candidate = now.replace(hour=config.schedule_hour, minute=config.schedule_minute,
                            second=0, microsecond=0)
    if config.schedule_frequency == "daily":
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate

    days_ahead = (WEEKDAYS.index(config.schedule_day) - now.weekday()) % 7
    candidate += timedelta(days=days_ahead)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate
