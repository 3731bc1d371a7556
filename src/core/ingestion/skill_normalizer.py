"""
Skill normalization for parsed resumes.

Deduplicates raw skill lists by normalized key, assigns a category bucket
and rewrites names into their canonical display form.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from src.core.errors import SkillNotFoundError
from src.data.models.resume import Skill, skill_key
from src.utils.constants import SKILL_CATEGORY_KEYWORDS, SKILL_DISPLAY_NAMES, SkillCategory
from src.utils.logger import get_logger

logger = get_logger(__name__)

RawSkill = Union[Skill, Mapping[str, Any]]


def normalize_key(name: str) -> str:
    """Skill name as used for deduplication: lowercased, whitespace collapsed."""
    return skill_key(name)


def display_name(name: str) -> str:
    """
    Canonical display form of a skill name.

    Well-known terms use a fixed spelling ("nodejs" -> "Node.js"); anything
    else is title-cased word by word.
    """
    key = normalize_key(name)
    if key in SKILL_DISPLAY_NAMES:
        return SKILL_DISPLAY_NAMES[key]
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split())


def categorize(name: str, explicit: Optional[str] = None) -> str:
    """
    Category for a skill.

    An explicit category wins. Otherwise the first keyword bucket, in fixed
    order, with a keyword contained in the name; otherwise "Other".
    """
    if explicit:
        return explicit

    lower_name = name.lower()
    for category, keywords in SKILL_CATEGORY_KEYWORDS:
        if any(keyword in lower_name for keyword in keywords):
            return category.value
    return SkillCategory.OTHER.value


class SkillNormalizer:
    """
    Deduplicates and canonicalizes skill lists.

    Merging is order dependent: when two inputs share a normalized key the
    one with the higher proficiency supplies ``name`` and ``proficiency``,
    but the category assigned to the first occurrence is kept.
    """

    def normalize(self, skills: Iterable[RawSkill]) -> list[Skill]:
        """
        Normalize a raw skill list.

        Args:
            skills: Skill models or mappings with ``name`` and optional
                ``proficiency``/``category``/``years_of_experience``

        Returns:
            New list of skills in first-seen order, one per normalized key
        """
        merged: dict[str, Skill] = {}

        for raw in skills:
            skill = self._coerce(raw)
            key = skill.normalized_key
            if not key:
                logger.debug("Skipping skill with blank name")
                continue

            existing = merged.get(key)
            if existing is None:
                merged[key] = skill.model_copy(
                    update={
                        "name": display_name(skill.name),
                        "category": categorize(skill.name, skill.category),
                    }
                )
            elif skill.proficiency_or_zero > existing.proficiency_or_zero:
                merged[key] = existing.model_copy(
                    update={
                        "name": display_name(skill.name),
                        "proficiency": skill.proficiency,
                    }
                )

        return list(merged.values())

    __call__ = normalize

    @staticmethod
    def _coerce(raw: RawSkill) -> Skill:
        if isinstance(raw, Skill):
            return raw
        return Skill.model_validate(dict(raw))


def normalize_skills(skills: Iterable[RawSkill]) -> list[Skill]:
    """Module-level shortcut for ``SkillNormalizer().normalize``."""
    return SkillNormalizer().normalize(skills)


def group_skills_by_category(skills: Iterable[Skill]) -> dict[str, list[Skill]]:
    """Group skills by category; uncategorized skills go under "Other"."""
    grouped: dict[str, list[Skill]] = {}
    for skill in skills:
        category = skill.category or SkillCategory.OTHER.value
        grouped.setdefault(category, []).append(skill)
    return grouped


def with_skill_proficiency(skills: list[Skill], skill_name: str, proficiency: float) -> list[Skill]:
    """
    Return a new skill list with one skill's proficiency replaced.

    The lookup is case-insensitive. The input list is left untouched.

    Raises:
        SkillNotFoundError: If no skill matches ``skill_name``
    """
    key = normalize_key(skill_name)
    updated: list[Skill] = []
    found = False

    for skill in skills:
        if not found and skill.normalized_key == key:
            updated.append(skill.model_copy(update={"proficiency": proficiency}))
            found = True
        else:
            updated.append(skill)

    if not found:
        raise SkillNotFoundError(f"Skill '{skill_name}' not found in parsed resume data")
    return updated
