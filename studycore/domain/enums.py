from enum import Enum


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class EventType(str, Enum):
    TASK_COMPLETED = "task_completed"
    REVIEW_COMPLETED = "review_completed"  # scored through the task path
    POMODORO_COMPLETED = "pomodoro_completed"
    FLASHCARD_REVIEWED = "flashcard_reviewed"
    DAILY_CHECK_IN = "daily_check_in"


class SessionType(str, Enum):
    WORK = "work"
    BREAK = "break"


DIFFICULTY_LABELS = {
    1: "Very easy",
    2: "Easy",
    3: "Normal",
    4: "Hard",
    5: "Very hard",
}
