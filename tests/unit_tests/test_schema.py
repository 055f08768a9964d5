from pydantic import ValidationError

from refinement.errors import ConfigurationError, UnknownChangeLevelError
from refinement.schema.schema import AugmentingPathEntry, BuildAction, ChangeLevel, ChangeLevelKind
from tests.unit_tests.helper import BaseTestCase


class TestChangeLevel(BaseTestCase):
    def test_parse(self):
        self.assertEqual(ChangeLevel.parse("full-transitive"), ChangeLevel.full_transitive())
        self.assertEqual(ChangeLevel.parse("full_transitive"), ChangeLevel.full_transitive())
        self.assertEqual(ChangeLevel.parse("itself"), ChangeLevel.itself())
        self.assertEqual(ChangeLevel.parse("3"), ChangeLevel.at_most_n_away(3))
        self.assertEqual(ChangeLevel.parse(ChangeLevel.itself()), ChangeLevel.itself())

    def test_parse_unknown(self):
        for token in ("everything", "-1", ""):
            with self.assertRaises(UnknownChangeLevelError):
                ChangeLevel.parse(token)
        self.assertTrue(issubclass(UnknownChangeLevelError, ConfigurationError))

    def test_negative_distance(self):
        with self.assertRaises(ValidationError):
            ChangeLevel.at_most_n_away(-1)
        self.assertTrue(issubclass(ValidationError, ValueError))

    def test_closer(self):
        self.assertEqual(ChangeLevel.at_most_n_away(2).closer(), ChangeLevel.at_most_n_away(1))

    def test_str_and_hash(self):
        self.assertEqual(str(ChangeLevel.at_most_n_away(2)), "at_most_n_away(2)")
        self.assertEqual(str(ChangeLevel.itself()), "itself")
        self.assertEqual(ChangeLevel.itself().kind, ChangeLevelKind.ITSELF)
        self.assertEqual(len({ChangeLevel.at_most_n_away(1), ChangeLevel.at_most_n_away(1)}), 1)


class TestBuildAction(BaseTestCase):
    def test_new(self):
        self.assertEqual(BuildAction.new("building"), BuildAction.BUILDING)
        self.assertEqual(BuildAction.new(BuildAction.TESTING), BuildAction.TESTING)
        with self.assertRaises(ConfigurationError):
            BuildAction.new("archiving")


class TestAugmentingPathEntry(BaseTestCase):
    def test_accepted_key_sets(self):
        entry = AugmentingPathEntry.from_dict({"path": "a", "inclusion_reason": "r"})
        self.assertEqual((entry.path, entry.glob, entry.yaml_keypath), ("a", None, None))

        entry = AugmentingPathEntry.from_dict({"path": "a", "inclusion_reason": "r", "keypath": ["x", 0]})
        self.assertEqual(entry.yaml_keypath, ["x", 0])

        entry = AugmentingPathEntry.from_dict({"glob": "*.md", "inclusion_reason": "r"})
        self.assertEqual(entry.glob, "*.md")

    def test_unhandled_keys(self):
        for entry in ({"path": "a"}, {"glob": "a", "path": "b", "inclusion_reason": "r"}, {"inclusion_reason": "r"}):
            with self.assertRaises(ConfigurationError):
                AugmentingPathEntry.from_dict(entry)
        with self.assertRaises(ConfigurationError):
            AugmentingPathEntry.from_dict(["path", "a"])
