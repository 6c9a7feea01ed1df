"""Tests for api/search.py -- title similarity scoring."""

import pytest

from manga_metadata.api.search import (
    edit_distance_score,
    levenshtein_distance,
    pick_best,
    score,
    word_set_score,
)

SAMPLE_TITLES = [
    "",
    " ",
    "Naruto",
    "naruto",
    "  One Piece  ",
    "Attack on Titan",
    "Shingeki no Kyojin",
    "Berserk",
    "Vagabond",
    "JoJo's Bizarre Adventure: Part 5",
    "鋼の錬金術師",
    "Yotsuba&!",
    "a",
]


class TestLevenshtein:
    def test_kitten_sitting(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_identical_strings(self):
        assert levenshtein_distance("berserk", "berserk") == 0

    def test_empty_vs_word(self):
        assert levenshtein_distance("", "abc") == 3


class TestSubScores:
    def test_word_set_jaccard(self):
        # {attack, on, titan} vs {attack, titan}
        assert word_set_score("attack on titan", "attack titan") == pytest.approx(2 / 3)

    def test_word_set_splits_on_whitespace_runs(self):
        assert word_set_score("one   piece", "one piece") == 1.0

    def test_word_set_empty_union(self):
        assert word_set_score("", "") == 0.0

    def test_edit_score_normalized_by_longest(self):
        assert edit_distance_score("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_edit_score_both_empty(self):
        assert edit_distance_score("", "") == 1.0


class TestScore:
    @pytest.mark.parametrize("s", SAMPLE_TITLES)
    def test_identity_is_one(self, s):
        assert score(s, s) == 1.0

    def test_case_and_whitespace_ignored(self):
        assert score("  NARUTO ", "naruto") == 1.0

    @pytest.mark.parametrize(
        "short, long",
        [
            ("naruto", "Naruto: Shippuden"),
            ("One Piece", "one piece party"),
            ("titan", "Attack on Titan"),
        ],
    )
    def test_containment_is_point_nine(self, short, long):
        assert score(short, long) == 0.9
        assert score(long, short) == 0.9

    def test_blended_score(self):
        # 0.6 * (2/3) + 0.4 * (1 - 3/15)
        assert score("Attack on Titan", "attack titan") == pytest.approx(0.72)

    def test_no_shared_words_stays_below_threshold(self):
        # Word score 0 caps the blend at the 0.4 edit weight
        assert score("berserk", "bleach") < 0.6

    def test_empty_vs_nonempty_is_zero(self):
        assert score("", "Berserk") == 0.0
        assert score("Berserk", "") == 0.0

    @pytest.mark.parametrize("a", SAMPLE_TITLES)
    @pytest.mark.parametrize("b", SAMPLE_TITLES)
    def test_bounded(self, a, b):
        assert 0.0 <= score(a, b) <= 1.0

    @pytest.mark.parametrize("a", SAMPLE_TITLES)
    @pytest.mark.parametrize("b", SAMPLE_TITLES)
    def test_symmetric_for_sample_pairs(self, a, b):
        # Containment is checked both ways and both sub-scores are symmetric
        assert score(a, b) == pytest.approx(score(b, a))


class TestPickBest:
    def test_exact_match_wins(self):
        best = pick_best("naruto", ["Naruto", "Naruto: Shippuden", "Bleach"])
        assert best == (0, 1.0)

    def test_exact_match_wins_when_not_first(self):
        best = pick_best("naruto", ["Naruto: Shippuden", "Bleach", "Naruto"])
        assert best == (2, 1.0)

    def test_ties_keep_first(self):
        best = pick_best("naruto", ["Naruto: Shippuden", "Boruto: Naruto Next Generations"])
        assert best == (0, 0.9)

    def test_empty_candidates(self):
        assert pick_best("naruto", []) is None
