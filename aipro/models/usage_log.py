"""
aipro/models/usage_log.py

Daily request counter for one user.
"""

from pydantic import BaseModel, ConfigDict, Field


class UsageLog(BaseModel):
    """
    Keyed by (user_id, date). `date` is a UTC day key (YYYY-MM-DD).
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    date: str
    count: int = Field(ge=0)
