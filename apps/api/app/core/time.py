from zoneinfo import ZoneInfo
import datetime as dt

from apps.api.app.core.config import settings


def risk_day_tz():
    return ZoneInfo(settings.RISK_DAY_TIMEZONE)


def utc_now():
    return dt.datetime.now(dt.timezone.utc)


def today_risk_day(now=None):
    # Alert dedup and daily limits share this calendar day.
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.timezone.utc)
    return now.astimezone(risk_day_tz()).date()
