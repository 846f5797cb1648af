import unittest

from skillpath.models.learning_models import Difficulty
from skillpath.utils.skills import (
    estimate_hours, get_display_name, infer_difficulty, normalize_skill_name
)


class TestNormalizeSkillName(unittest.TestCase):

    def test_case_whitespace_and_js_suffix_share_a_key(self):
        self.assertEqual(normalize_skill_name("React"), "react")
        self.assertEqual(normalize_skill_name("react "), "react")
        self.assertEqual(normalize_skill_name("React.js"), "react")

    def test_dots_removed_and_inner_whitespace_joined(self):
        self.assertEqual(normalize_skill_name("Node.js"), "node")
        self.assertEqual(normalize_skill_name("  Machine   Learning "), "machine-learning")
        self.assertEqual(normalize_skill_name("ASP.NET Core"), "aspnet-core")

    def test_case_folding(self):
        self.assertEqual(normalize_skill_name("STRASSE"), normalize_skill_name("straße"))


class TestDisplayName(unittest.TestCase):

    def test_known_skill(self):
        self.assertEqual(get_display_name("machine learning"), "Machine Learning")
        self.assertEqual(get_display_name("nodejs"), "Node.js")

    def test_unknown_skill_keeps_trimmed_input(self):
        self.assertEqual(get_display_name("  Elixir Phoenix "), "Elixir Phoenix")


class TestDifficulty(unittest.TestCase):

    def test_keywords(self):
        self.assertEqual(infer_difficulty("Advanced TypeScript"), Difficulty.ADVANCED)
        self.assertEqual(infer_difficulty("System Design"), Difficulty.ADVANCED)
        self.assertEqual(infer_difficulty("Production Docker"), Difficulty.INTERMEDIATE)

    def test_learning_type(self):
        self.assertEqual(infer_difficulty("Python", "practice"), Difficulty.INTERMEDIATE)
        self.assertEqual(infer_difficulty("Python", "theory"), Difficulty.BEGINNER)
        self.assertEqual(infer_difficulty("Python"), Difficulty.BEGINNER)

    def test_estimated_hours(self):
        self.assertEqual(estimate_hours(Difficulty.BEGINNER), 30)
        self.assertEqual(estimate_hours(Difficulty.INTERMEDIATE), 50)
        self.assertEqual(estimate_hours(Difficulty.ADVANCED), 80)


if __name__ == "__main__":
    unittest.main()
