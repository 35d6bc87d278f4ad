import logging
from typing import Any, Dict

from herbal_backend.config import Settings
from herbal_backend.services.ai_remedy import generate_herbal_remedy, is_health_related
from herbal_backend.services.symptom_validation import validate_symptoms
from herbal_backend.utils.exceptions import NotHealthRelated

logger = logging.getLogger("herbal")


async def get_herbal_remedy(symptoms: Any, client, settings: Settings) -> Dict[str, str]:
    """Validate, classify and, for health-related text, generate a remedy plan."""
    text = validate_symptoms(symptoms)

    relevant = await is_health_related(
        client,
        text,
        model=settings.classifier_model,
        timeout_s=settings.classifier_timeout_s,
        debug=settings.debug,
    )
    logger.info({"function": "herbal_remedy", "stage": "classify", "chars": len(text), "health_related": relevant})
    if not relevant:
        raise NotHealthRelated()

    remedy = await generate_herbal_remedy(
        client,
        text,
        model=settings.remedy_model,
        timeout_s=settings.remedy_timeout_s,
        debug=settings.debug,
    )
    logger.info({"function": "herbal_remedy", "stage": "generate", "chars": len(remedy)})
    return {"remedy": remedy}
