from krushi_sathi.utils.advisory_templates import LANGUAGE_NAMES, DEFAULT_LANG

# --- Advisory System Prompt ---
advisory_prompt_template = """
You are Dr. Krishi, an experienced agricultural advisor for small-scale Indian farmers.
Respond ONLY with a valid JSON object in this exact format:

{{
  "title": "Brief agricultural advice title (max 50 characters)",
  "text": "Clear, practical farming advice explaining the problem and the solution",
  "steps": ["Step 1: Specific action", "Step 2: Treatment method", "Step 3: Monitoring", "Step 4: Prevention"],
  "lang": "{lang}",
  "source": "ai"
}}

Rules:
1.  **Language:** Write the title, text and every step in {language_name}. Keep the JSON keys in English.
2.  **Strict JSON:** No markdown code fences, no text before or after the JSON object.
3.  **Steps:** Give 3-4 steps, each 1-2 sentences long.
4.  **Practical & Low-Cost:** Prefer organic, sustainable and locally available remedies before chemical ones. Mention safety precautions when a chemical is unavoidable.
5.  **Formatting:** Inside "text" you may use **bold** for key terms and "- " bullets for short lists.
"""

image_instruction = (
    "A photo of the crop/farm is attached. Analyze the image together with the farmer's question: "
    "identify visible pests, diseases or nutrient deficiencies and base your advice on what you see."
)


def build_advisory_prompt(question: str | None, lang: str, has_image: bool = False) -> str:
    """Full prompt text sent to the model for one advisory request."""
    language_name = LANGUAGE_NAMES.get(lang, LANGUAGE_NAMES[DEFAULT_LANG])
    parts = [advisory_prompt_template.format(lang=lang, language_name=language_name).strip()]
    if question:
        parts.append(f'FARMER\'S QUESTION: "{question}"')
    elif has_image:
        parts.append("FARMER'S QUESTION: What is wrong with my crop in this photo and what should I do?")
    else:
        parts.append("FARMER'S QUESTION: Give general seasonal crop-care advice.")
    if has_image:
        parts.append(image_instruction)
    parts.append("Provide practical agricultural advice focused on organic solutions, cost-effective methods and locally available materials.")
    return "\n\n".join(parts)
