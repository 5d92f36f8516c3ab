"""Unit Conversions - Pure functions for mass and length.

Conversions never round; whole-number display values go through
round_half_up so halves always round up (62.5 -> 63).
"""

import math

LB_PER_KG = 2.20462
CM_PER_FOOT = 30.48
CM_PER_INCH = 2.54


def round_half_up(value: float) -> int:
    """Round to the nearest integer; exact halves round up."""
    return math.floor(value + 0.5)


def kg_to_lb(kg: float) -> float:
    """Convert kilograms to pounds."""
    return kg * LB_PER_KG


def lb_to_kg(lb: float) -> float:
    """Convert pounds to kilograms."""
    return lb / LB_PER_KG


def cm_to_feet_inches(cm: float) -> tuple[int, int]:
    """Split a height in centimeters into whole feet and rounded inches.

    Inches are rounded independently of feet, so a height just under a
    whole foot yields 12 inches (e.g. 182.8 cm -> (5, 12)). No carry is
    applied.

    Args:
        cm: Height in centimeters

    Returns:
        Tuple of (feet, inches)
    """
    feet = math.floor(cm / CM_PER_FOOT)
    inches = round_half_up((cm % CM_PER_FOOT) / CM_PER_INCH)
    return feet, inches


def format_height(cm: float) -> str:
    """Format a height as feet and inches, e.g. 5'10"."""
    feet, inches = cm_to_feet_inches(cm)
    return f"{feet}'{inches}\""
