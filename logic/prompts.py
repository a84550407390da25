"""Prompt builders shared by the generative agents."""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

STYLE_GUARDRAILS: List[str] = [
    "Stay within wardrobe, styling and shopping advice.",
    "Never repeat the user's email address or other account details.",
    "Keep answers short and actionable.",
]

DEFAULT_BUILD = "Standard Average Build"


def _guardrail_text() -> str:
    return "\n".join(f"- {bullet}" for bullet in STYLE_GUARDRAILS)


def weather_tip_prompt(
    location: Optional[str],
    time_of_day: str,
    temperature_c: Optional[float],
    condition: Optional[str],
) -> str:
    loc = location or "your area"
    temp = f"{temperature_c:.0f}°C" if temperature_c is not None else "an expected temperature"
    cond = condition or "mixed conditions"
    return (
        "You are a helpful fashion assistant. "
        f"Given the user's locality ({loc}), time of day ({time_of_day}), "
        f"current temperature ({temp}), and weather condition ({cond}), suggest a brief "
        "accessory or small outfit adjustment (one sentence) that improves comfort and style. "
        "Keep it short and actionable. "
        "Example: 'Carry a lightweight umbrella and wear water-resistant trainers.'"
    )


def measurements_text(measurements: Optional[Mapping[str, float]]) -> str:
    """Sorted ``key: value`` pairs, empty when nothing is stored."""

    if not measurements:
        return ""
    pairs = ", ".join(sorted(f"{key}: {value}" for key, value in measurements.items()))
    return f"User measurements: {pairs}."


def shopping_suggestions_prompt(
    items: Sequence[str],
    event: str,
    location: Optional[str],
    gender: Optional[str],
    measurements: Optional[Mapping[str, float]] = None,
) -> str:
    loc = location or "your area"
    parts = [
        "You are a fashion assistant. Provide 5 concise shopping search phrases "
        f"(one per line) useful to find items: {', '.join(items)} for the event "
        f"'{event}' in {loc}.",
        f"User gender: {gender or 'Unspecified'}.",
    ]
    extra = measurements_text(measurements)
    if extra:
        parts.append(extra)
    parts.append(
        "Keep phrases short, e.g. 'black oxford dress shoes' or 'black cocktail dress'."
    )
    parts.append(_guardrail_text())
    return " ".join(parts[:-1]) + "\n" + parts[-1]


def garment_label_prompt(category_options: Sequence[str]) -> str:
    """Ask the text model to label an uploaded photo.

    The answer is a comma-separated list of labels, most confident first, which
    feeds the clothing check.
    """

    return (
        "List the three most likely labels for the main object in this photo, "
        "most confident first, as a comma-separated list of lowercase nouns "
        "(for example: 'shirt, clothing, apparel'). "
        f"Clothing categories in use: {', '.join(category_options)}. "
        "Do not add any other text."
    )


def build_measurement_string(measurements: Optional[Mapping[str, float]]) -> str:
    if not measurements:
        return DEFAULT_BUILD
    height = float(measurements.get("height", 0.0))
    weight = float(measurements.get("bodyWeight", 0.0))
    chest = float(measurements.get("chest", 0.0))
    waist = float(measurements.get("waist", 0.0))
    hips = float(measurements.get("hips", 0.0))
    return (
        f"Height: {height}cm, Weight: {weight}kg, Chest: {chest}cm, "
        f"Waist: {waist}cm, Hips: {hips}cm"
    )


def try_on_prompt(gender: Optional[str], measurement_string: str) -> str:
    target = gender or "Neutral"
    return f"""ROLE: Virtual Fashion Stylist.
TASK: Generate a high-quality fashion visualization of a mannequin wearing the selected outfit.

VISUAL REQUIREMENTS (STRICT):
1. POSE: Front-facing, standing straight. Arms slightly away from body (A-Pose).

2. BODY & GENDER (CRITICAL):
   - Target Gender: {target}.
   - The mannequin structure must reflect a {target} physique.
   - Match these User Measurements: {measurement_string}.
   - Sample the SKIN TONE from the Reference Image (Image 1).

3. HEAD & FACE:
   - Render a DEFINED MANNEQUIN HEAD. Do not crop the head.
   - The face must be ABSTRACT/STYLIZED (smooth features).
   - DO NOT generate a realistic human face.

4. BACKGROUND: Pure White (#FFFFFF).
"""


TRY_ON_REFERENCE_HEADER = "\n\nREFERENCE IMAGE (For Skin Tone & Body Shape):"
TRY_ON_GARMENTS_HEADER = "\n\nGARMENTS TO WEAR:"
TRY_ON_FINAL_INSTRUCTION = "\n\nGENERATE: The final mannequin image."


def avatar_prompt(gender: Optional[str], measurement_string: str) -> str:
    target = gender or "Neutral"
    return f"""ROLE: Virtual Fashion Stylist.
TASK: Create a full-body mannequin avatar that the user's outfits will be rendered on.

REQUIREMENTS:
1. POSE: Front-facing, standing straight, A-Pose, full body including feet.
2. BODY: {target} physique matching these measurements: {measurement_string}.
3. SKIN TONE: Sample it from the selfie provided.
4. HEAD & FACE: Defined mannequin head with an abstract, smooth face. No realistic human face.
5. CLOTHING: Plain neutral base layer only.
6. BACKGROUND: Pure White (#FFFFFF).
"""


__all__ = [
    "DEFAULT_BUILD",
    "STYLE_GUARDRAILS",
    "TRY_ON_FINAL_INSTRUCTION",
    "TRY_ON_GARMENTS_HEADER",
    "TRY_ON_REFERENCE_HEADER",
    "avatar_prompt",
    "build_measurement_string",
    "garment_label_prompt",
    "measurements_text",
    "shopping_suggestions_prompt",
    "try_on_prompt",
    "weather_tip_prompt",
]
