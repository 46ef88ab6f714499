"""Prompt builders for the part, vehicle, product and quality passes."""

from typing import Optional

from models.findings import AnalysisVariant

_COMMON_TAIL = (
    "Also return `confidence_score` (integer 0-100, your overall confidence in the ENTIRE analysis) "
    "and `seo_optimized_alt_text` (a descriptive, search-friendly alt text for this image). "
    "Respond ONLY with a valid, minified JSON object. No markdown, no commentary."
)

_TIERED_INSTRUCTIONS = (
    (
        ("truck bed cover", "tonneau"),
        [
            ("Bed Protection & Organization Add-ons", "bed mats or rugs, swing-out cases, bed slides, cargo bars, tailgate seals, tailgate locks"),
            ("Hauling Hardware & Rack Systems", "bed racks, low-profile toolboxes"),
            ("Alternative Bed Enclosures", "camper shells, soft toppers, canvas tarps"),
        ],
    ),
    (
        ("wheels", "rims", "tires"),
        [
            ("Tire Integration & Installation Hardware", "tires, TPMS sensors, hub centric rings, lug nuts"),
            ("Stance & Clearance Components", "lift or leveling kits, fender flares, wheel spacers"),
            ("Cosmetic Alternatives", "wheel skins, hubcaps, caliper covers"),
        ],
    ),
    (
        ("nerf bars", "running boards", "side steps"),
        [
            ("Access Points & Paint Protection", "bed steps, hitch steps, mud flaps, door sill guards"),
            ("Frame Protection & Lighting", "rock sliders, LED light strips, gap guards"),
            ("Step Alternatives", "power steps, hoop steps, drop steps"),
        ],
    ),
)


def build_context_instruction(prompt_context: Optional[str]) -> str:
    """Return the focus sentence for a category page, or an empty string."""
    if not prompt_context:
        return ""
    return (
        f" PAY SPECIAL ATTENTION to {prompt_context}. "
        f"Keep the analysis relevant to someone shopping for {prompt_context}."
    )


def build_tiered_instruction(prompt_context: Optional[str]) -> str:
    """Return the tiered accessory instruction for known categories."""
    if not prompt_context:
        return ""
    lowered = prompt_context.lower()
    for keywords, tiers in _TIERED_INSTRUCTIONS:
        if any(keyword in lowered for keyword in keywords):
            lines = [f'{index}. "{title}": {examples}.' for index, (title, examples) in enumerate(tiers, start=1)]
            return (
                " Also return `tieredRecommendations`: an array of objects with `title` and `items`, "
                "using these tiers in order: " + " ".join(lines) + ' Format EVERY item as '
                '"Product Name (e.g. Example 1, Example 2)".'
            )
    return ""


def build_part_prompt(prompt_context: Optional[str] = None) -> str:
    return (
        "You are an expert automotive parts specialist. Identify the primary part shown in these images "
        "(they are different views of the same part)."
        + build_context_instruction(prompt_context)
        + " Return `part_name` (string), `manufacturer_guess` (string, \"Unknown\" if not determinable), "
        "`category` (string), `function` (string) and `compatibility` (array of likely vehicle fitments). "
        + _COMMON_TAIL
    )


def build_vehicle_prompt(prompt_context: Optional[str] = None) -> str:
    return (
        "You are an expert vehicle mechanic and fitment specialist. Analyze the vehicle shown in these images "
        "(they are different views of the same vehicle)."
        + build_context_instruction(prompt_context)
        + " Return `primary` for the most likely vehicle with `make`, `model`, `year` (string, a range such as "
        "\"2021-2024\" when unsure), `trim`, `cabStyle` (or null), `bedLength` (or null), `vehicleType`, `color`, "
        "`condition` and `confidence` (number 0-100). Also return `engineDetails` (string or null), "
        "`otherPossibilities` (2-3 objects with `vehicle`, `yearRange`, `trim`, `confidence`) and "
        "`recommendedAccessories` (3-5 strings formatted \"Product Name (e.g. Example 1, Example 2)\")."
        + build_tiered_instruction(prompt_context)
        + " "
        + _COMMON_TAIL
    )


def build_products_prompt(prompt_context: Optional[str] = None, vehicle_details: Optional[str] = None) -> str:
    vehicle_hint = f" The vehicle has been identified as a {vehicle_details}." if vehicle_details else ""
    return (
        "You are an expert in aftermarket automotive accessories. List every aftermarket product visible on the "
        "vehicle in these images."
        + vehicle_hint
        + build_context_instruction(prompt_context)
        + " Return `products`: an array of objects with `productType` (e.g. \"Tonneau Cover\"), `brandModel` "
        "(best guess, \"Unknown\" if not determinable) and `confidence` (number 0-100). Use an empty array when "
        "nothing aftermarket is visible. "
        + _COMMON_TAIL
    )


def build_quality_prompt() -> str:
    return (
        "You check photos before an automotive identification step. Decide whether these images are good enough "
        "to identify the vehicle or part: look for blur, poor lighting, heavy cropping, obstructions, or a subject "
        "that is too small or missing. Respond ONLY with a minified JSON object: "
        "{\"isHighQuality\": boolean, \"issues\": [string]} where `issues` is empty for good images."
    )


def build_prompt(
    variant: AnalysisVariant,
    prompt_context: Optional[str] = None,
    vehicle_details: Optional[str] = None,
) -> str:
    """Return the instruction shared by the scout and sniper passes."""
    if variant is AnalysisVariant.VEHICLE:
        return build_vehicle_prompt(prompt_context)
    if variant is AnalysisVariant.PRODUCTS:
        return build_products_prompt(prompt_context, vehicle_details)
    return build_part_prompt(prompt_context)
