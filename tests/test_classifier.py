"""Tests for the failure marker classifier."""

from __future__ import annotations

import unittest

from freshgit.classifier import DEFAULT_FAILURE_MARKERS, MarkerClassifier, default_classifier, tokenize


class TokenizeTests(unittest.TestCase):
    def test_splits_on_spaces_and_colons(self) -> None:
        self.assertEqual(
            tokenize("fatal: Authentication failed for 'https://example.com/org/repo.git/'"),
            ["fatal", "Authentication", "failed", "for", "'https", "//example.com/org/repo.git/'"],
        )

    def test_blank_line_has_no_tokens(self) -> None:
        self.assertEqual(tokenize("   "), [])


class MarkerClassifierTests(unittest.TestCase):
    def test_authentication_failure_matches_first_marker(self) -> None:
        self.assertEqual(default_classifier.match("fatal: Authentication failed"), "fatal")
        self.assertTrue(default_classifier.classify("fatal: Authentication failed"))

    def test_multi_word_markers_match_contiguous_tokens(self) -> None:
        self.assertEqual(
            default_classifier.match("Could not resolve host: example.com"),
            "Could not",
        )
        self.assertEqual(
            default_classifier.match("Enter passphrase for key '/home/me/.ssh/id_ed25519':"),
            "Enter passphrase for key",
        )
        self.assertIsNone(default_classifier.match("Could we not just fetch"))

    def test_other_default_markers(self) -> None:
        lines = {
            "remote: Repository not found. error: 404": "error",
            "Permission denied (publickey).": "denied",
            "ssh: Couldn't resolve hostname": "Couldn't",
            "Traceback (most recent call last):": "Traceback",
        }
        for line, marker in lines.items():
            with self.subTest(line=line):
                self.assertEqual(default_classifier.match(line), marker)

    def test_progress_output_does_not_match(self) -> None:
        for line in (
            "Cloning into '/src/org/repo'...",
            "Fetching origin",
            "Receiving objects: 100% (10/10), done.",
            "remote: Total 0 (delta 0), reused 0 (delta 0), pack-reused 0",
        ):
            with self.subTest(line=line):
                self.assertFalse(default_classifier.classify(line))

    def test_matching_is_case_sensitive_and_token_exact(self) -> None:
        self.assertIsNone(default_classifier.match("FATAL: something"))
        self.assertIsNone(default_classifier.match("0 errors found"))

    def test_custom_vocabulary_replaces_defaults(self) -> None:
        classifier = MarkerClassifier(["Username for", "timeout"])

        self.assertEqual(classifier.match("Username for 'https://example.com':"), "Username for")
        self.assertIsNone(classifier.match("fatal: Authentication failed"))
        self.assertEqual(classifier.markers, ["Username for", "timeout"])

    def test_default_vocabulary_is_exposed(self) -> None:
        self.assertEqual(set(default_classifier.markers), set(DEFAULT_FAILURE_MARKERS))

    def test_classifier_is_callable_policy(self) -> None:
        self.assertEqual(default_classifier("error: pathspec"), "error")


if __name__ == "__main__":
    unittest.main()
