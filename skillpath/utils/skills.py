"""
Skill-name helpers: cache keys, display names and difficulty heuristics.
"""

import re
from typing import Optional

from skillpath.models.learning_models import Difficulty

DISPLAY_NAMES = {
    "react": "React",
    "nodejs": "Node.js",
    "node-js": "Node.js",
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "python": "Python",
    "java": "Java",
    "c++": "C++",
    "cpp": "C++",
    "sql": "SQL",
    "mongodb": "MongoDB",
    "docker": "Docker",
    "kubernetes": "Kubernetes",
    "aws": "AWS",
    "git": "Git",
    "machine-learning": "Machine Learning",
    "data-structures": "Data Structures",
    "algorithms": "Algorithms",
    "system-design": "System Design",
}

ADVANCED_KEYWORDS = ["advanced", "senior", "expert", "architecture", "system design", "optimization"]
INTERMEDIATE_KEYWORDS = ["intermediate", "professional", "production", "best practices"]

ESTIMATED_HOURS = {
    Difficulty.BEGINNER: 30,
    Difficulty.INTERMEDIATE: 50,
    Difficulty.ADVANCED: 80,
}


def normalize_skill_name(name: str) -> str:
    """
    Build the cache key for a skill.
    e.g. "React" -> "react", " Node.js " -> "node", "Machine  Learning" -> "machine-learning"
    """
    key = name.strip().casefold()
    key = re.sub(r"\.js$", "", key)
    key = key.replace(".", "")
    return re.sub(r"\s+", "-", key)


def get_display_name(skill_name: str) -> str:
    """Human-facing name for a skill, falling back to the trimmed input."""
    return DISPLAY_NAMES.get(normalize_skill_name(skill_name), skill_name.strip())


def infer_difficulty(skill_name: str, learning_type: Optional[str] = None) -> Difficulty:
    """Guess a difficulty level from keywords in the skill name and the learning type."""
    lower_name = skill_name.lower()

    if any(k in lower_name for k in ADVANCED_KEYWORDS):
        return Difficulty.ADVANCED
    if any(k in lower_name for k in INTERMEDIATE_KEYWORDS):
        return Difficulty.INTERMEDIATE

    # Default based on learning type
    if learning_type == "practice":
        return Difficulty.INTERMEDIATE
    return Difficulty.BEGINNER


def estimate_hours(difficulty: Difficulty) -> int:
    return ESTIMATED_HOURS.get(difficulty, 40)
