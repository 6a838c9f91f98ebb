# Models live in studycore.data; imported here so Django registers them
from .data.models import ActivityLog, GamificationProfile, ReviewLog, ReviewTask  # noqa: F401
