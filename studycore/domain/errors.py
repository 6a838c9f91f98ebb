class StudyCoreError(Exception):
    """Base class for errors raised by the scheduling and gamification core."""

    code = "studycore_error"

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self):
        return {"error": self.code, "message": self.message, **self.context}


class NotAReviewItem(StudyCoreError):
    code = "not_a_review_item"


class InvalidDifficultyRating(StudyCoreError):
    code = "invalid_difficulty_rating"


class ItemNotFound(StudyCoreError):
    code = "item_not_found"


class UnknownEventType(StudyCoreError):
    code = "unknown_event_type"


class InvalidPayload(StudyCoreError):
    code = "invalid_payload"
