"""Pydantic models for the daily learning timeline."""

from pydantic import BaseModel


class DailyPatterns(BaseModel):
    example_requests: int = 0
    explanation_requests: int = 0
    code_requests: int = 0
    comparison_requests: int = 0


class TimelineDay(BaseModel):
    date: str                    # YYYY-MM-DD
    day_name: str                # Mon, Tue, ...
    messages: int = 0
    sessions: int = 0
    avg_session_length: int = 0
    is_weekend: bool = False
    patterns: DailyPatterns = DailyPatterns()


class PeakDay(BaseModel):
    date: str = ""
    day_name: str = ""
    messages: int = 0


class TimelineSummary(BaseModel):
    total_messages: int = 0
    total_sessions: int = 0
    avg_daily_messages: int = 0
    peak_day: PeakDay = PeakDay()


class Timeline(BaseModel):
    range: str = "7d"
    timeline: list[TimelineDay] = []
    summary: TimelineSummary = TimelineSummary()
