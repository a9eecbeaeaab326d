from django.test import SimpleTestCase

from .fingerprint import fingerprint, is_well_formed, new_fingerprint, normalize_fingerprint


class FingerprintTests(SimpleTestCase):
    def test_fingerprint_is_deterministic_sha256_hex(self):
        first = fingerprint(1, 2, "Ingeniería", "degree", "1700000000000_abcd")
        second = fingerprint(1, 2, "Ingeniería", "degree", "1700000000000_abcd")

        self.assertEqual(first, second)
        self.assertTrue(is_well_formed(first))

    def test_fingerprint_depends_on_every_input(self):
        base = fingerprint(1, 2, "Curso", "course", "n1")

        self.assertNotEqual(fingerprint(3, 2, "Curso", "course", "n1"), base)
        self.assertNotEqual(fingerprint(1, 3, "Curso", "course", "n1"), base)
        self.assertNotEqual(fingerprint(1, 2, "Otro", "course", "n1"), base)
        self.assertNotEqual(fingerprint(1, 2, "Curso", "degree", "n1"), base)
        self.assertNotEqual(fingerprint(1, 2, "Curso", "course", "n2"), base)

    def test_identical_metadata_gets_distinct_fingerprints(self):
        values = {new_fingerprint(1, 2, "Curso", "course") for _ in range(50)}
        self.assertEqual(len(values), 50)

    def test_normalize_fingerprint(self):
        cases = [
            ("  ABCDEF" + "0" * 58 + "\n", "abcdef" + "0" * 58),
            ("", ""),
            (None, ""),
        ]
        for raw, expected in cases:
            with self.subTest(raw=raw):
                self.assertEqual(normalize_fingerprint(raw), expected)

    def test_is_well_formed_rejects_other_shapes(self):
        self.assertFalse(is_well_formed("abc"))
        self.assertFalse(is_well_formed("g" * 64))
        self.assertFalse(is_well_formed("a" * 65))
