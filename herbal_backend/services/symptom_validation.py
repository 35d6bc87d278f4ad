from typing import Any

from herbal_backend.utils.exceptions import InvalidInput, TooLong, TooShort

MIN_SYMPTOMS_LENGTH = 10
MAX_SYMPTOMS_LENGTH = 1000


def validate_symptoms(symptoms: Any) -> str:
    """Return the trimmed symptom text or raise a 400-class ApiError."""
    if not isinstance(symptoms, str) or not symptoms.strip():
        raise InvalidInput()

    trimmed = symptoms.strip()
    if len(trimmed) < MIN_SYMPTOMS_LENGTH:
        raise TooShort(
            f"Please provide more details about your symptoms (minimum {MIN_SYMPTOMS_LENGTH} characters)."
        )
    if len(trimmed) > MAX_SYMPTOMS_LENGTH:
        raise TooLong(f"Symptoms text is too long (maximum {MAX_SYMPTOMS_LENGTH} characters).")
    return trimmed
