"""Turn-by-turn text and icons for OSRM maneuvers."""

from __future__ import annotations

from typing import Any

from .models import Instruction, InstructionIcon

_ROUNDABOUT_TYPES = {"roundabout", "rotary", "roundabout turn", "exit roundabout", "exit rotary"}

# maneuver type -> (text with modifier, text without modifier)
_TEMPLATES = {
    "turn": ("Turn {modifier}", "Turn"),
    "new name": ("Continue", "Continue"),
    "continue": ("Continue {modifier}", "Continue"),
    "merge": ("Merge {modifier}", "Merge"),
    "on ramp": ("Take the ramp on the {modifier}", "Take the ramp"),
    "off ramp": ("Take the exit on the {modifier}", "Take the exit"),
    "fork": ("Keep {modifier} at the fork", "Keep going at the fork"),
    "end of road": ("Turn {modifier} at the end of the road", "Turn at the end of the road"),
    "use lane": ("Keep {modifier}", "Continue"),
    "notification": ("Continue", "Continue"),
}


def maneuver_icon(maneuver_type: str, modifier: str | None) -> InstructionIcon:
    if maneuver_type == "depart":
        return "start"
    if maneuver_type == "arrive":
        return "destination"
    if maneuver_type in _ROUNDABOUT_TYPES:
        return "roundabout"
    if modifier == "uturn":
        return "uturn"
    if modifier and modifier.endswith("left"):
        return "left"
    if modifier and modifier.endswith("right"):
        return "right"
    if modifier == "straight":
        return "straight"
    return "generic"


def maneuver_text(step: dict[str, Any]) -> str:
    maneuver = step.get("maneuver") or {}
    maneuver_type = maneuver.get("type", "")
    modifier = maneuver.get("modifier")
    name = (step.get("name") or "").strip()
    onto = f" onto {name}" if name else ""

    if maneuver_type == "depart":
        return f"Start on {name}" if name else "Start"
    if maneuver_type == "arrive":
        if modifier in ("left", "right"):
            return f"Arrive at your destination on the {modifier}"
        return "Arrive at your destination"
    if maneuver_type in _ROUNDABOUT_TYPES:
        exit_number = maneuver.get("exit")
        if maneuver_type.startswith("exit"):
            return f"Exit the roundabout{onto}"
        if exit_number:
            return f"At the roundabout, take exit {exit_number}{onto}"
        return f"Enter the roundabout{onto}"
    if modifier == "uturn":
        return f"Make a U-turn{onto}"

    with_modifier, without_modifier = _TEMPLATES.get(maneuver_type, ("Continue {modifier}", "Continue"))
    text = with_modifier.format(modifier=modifier) if modifier else without_modifier
    return f"{text}{onto}"


def build_instruction(step: dict[str, Any]) -> Instruction:
    maneuver = step.get("maneuver") or {}
    location = maneuver.get("location") or (None, None)
    return Instruction(
        text=maneuver_text(step),
        distance_m=int(round(step.get("distance") or 0)),
        icon=maneuver_icon(maneuver.get("type", ""), maneuver.get("modifier")),
        latitude=location[1],
        longitude=location[0],
    )
