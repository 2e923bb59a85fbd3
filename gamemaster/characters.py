"""Character creation from scenario customization choices.

Attributes start at 0. Each chosen customization option adds its attribute
bonuses. A skill is available iff the attribute it depends on is >= 1.

Every customization category of the scenario must be chosen exactly once and
the chosen option must exist in that category.
"""

from gamemaster.models import CharacterSheet, Scenario

SKILL_UNLOCK_THRESHOLD = 1


def missing_customizations(scenario: Scenario, choices: dict[str, str]) -> list[str]:
    """Categories the player has not picked yet, in scenario order."""
    return [c for c in scenario.player_customizations if not choices.get(c)]


def validate_choices(scenario: Scenario, choices: dict[str, str]) -> None:
    for category, option in choices.items():
        cat = scenario.player_customizations.get(category)
        if cat is None:
            raise ValueError(f"Unknown customization category: {category}")
        if option not in cat.content:
            raise ValueError(f"Unknown option '{option}' for {category}")
    missing = missing_customizations(scenario, choices)
    if missing:
        raise ValueError(
            "Please complete all character customizations before starting: "
            + ", ".join(missing)
        )


def skill_available(scenario: Scenario, attributes: dict[str, float], skill_name: str) -> bool:
    info = scenario.base_skills.get(skill_name)
    if info is None:
        return False
    return attributes.get(info.attribute, 0) >= SKILL_UNLOCK_THRESHOLD


def new_character_sheet(scenario: Scenario, choices: dict[str, str]) -> CharacterSheet:
    """Build a character sheet from customization choices (validated first)."""
    validate_choices(scenario, choices)

    attributes: dict[str, float] = {attr: 0 for attr in scenario.attributes}
    for category, option in choices.items():
        bonuses = scenario.player_customizations[category].content[option].attribute_bonus
        for attr, bonus in bonuses.items():
            attributes[attr] = attributes.get(attr, 0) + bonus

    skills = {
        name: skill_available(scenario, attributes, name)
        for name in scenario.base_skills
    }
    return CharacterSheet(
        attributes=attributes,
        skills=skills,
        customizations=dict(choices),
    )
