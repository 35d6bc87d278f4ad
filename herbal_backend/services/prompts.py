from typing import Mapping

HEALTH_RELATED_PROMPT = """Analyze the following text and determine if it describes health-related symptoms or medical conditions.
Consider symptoms, pain, discomfort, or any health concerns.
Respond with a single word: 'yes' if health-related, 'no' otherwise.

Text: "{text}"
"""

HERBAL_REMEDY_PROMPT = """You are an expert in herbal medicine and natural remedies.
Create a user-tailored herbal remedy plan for these symptoms: "{symptoms}"

Rules:
- OUTPUT MUST BE MARKDOWN
- Use exactly the six sections below, in this order, with these headings
- Be specific and practical; keep each section focused on the described symptoms

### 🌿 Recommended Herbs
- 3-5 herbs with a brief rationale (include scientific names in italics)

### 🍵 Preparation Methods
- Tea/infusion with measurements and steps
- Tincture or topical application only where clearly relevant

### 💊 Dosage & Administration
- How much, how often, and for how long for each herb

### ⚠️ Precautions & Contraindications
- Interactions, pregnancy/breastfeeding cautions, conditions where an herb should be avoided

### 🩺 When to See a Doctor
- Warning signs that need professional care

### 💡 Additional Tips
- Short, symptom-specific supportive measures
"""


def build_prompt(template: str, values: Mapping[str, str]) -> str:
    """Substitute ``{name}`` placeholders in template.

    Plain replacement; other braces in the template are left alone.
    """
    prompt = template
    for name, value in values.items():
        prompt = prompt.replace("{" + name + "}", value)
    return prompt
