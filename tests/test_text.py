import unittest

from concierge.text import includes_any, normalize, tokenize


class NormalizeTest(unittest.TestCase):
    def test_lowercases_and_strips_punctuation(self):
        self.assertEqual(normalize("  Where's the EXAM-office?? "), "where s the exam office")

    def test_collapses_whitespace(self):
        self.assertEqual(normalize("Campus\t\tMess\n"), "campus mess")

    def test_empty(self):
        self.assertEqual(normalize(""), "")
        self.assertEqual(normalize("?!"), "")

    def test_idempotent(self):
        once = normalize("Show me: Pulchowk Library -> Campus Mess")
        self.assertEqual(normalize(once), once)


class TokenizeTest(unittest.TestCase):
    def test_drops_single_characters(self):
        self.assertEqual(tokenize("a to Library!"), ["to", "library"])

    def test_empty(self):
        self.assertEqual(tokenize("   "), [])

    def test_includes_any(self):
        self.assertTrue(includes_any("where is the library", ("library", "mess")))
        self.assertFalse(includes_any("where is the library", ("canteen",)))


if __name__ == "__main__":
    unittest.main()
