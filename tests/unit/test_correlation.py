"""
Unit tests for the frequency-domain correlator
"""

import pytest
import numpy as np
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.errors import ComputationError, InvalidInputError
from common.types import GrayImage, Match
from correlator.config import CorrelationOptions
from correlator.correlate import correlate, locate_max, ncc_surface, template_stats
from correlator.preprocess import gray_from_array


def _noise(h, w, seed=0):
    return np.random.default_rng(seed).random((h, w))


def _direct_ncc(template, search, x, y):
    """Spatial NCC at one fully-inside anchor (reference for the FFT path)."""
    h, w = template.shape
    win = search[y:y + h, x:x + w]
    t = template - template.mean()
    s = win - win.mean()
    return float((t * s).sum() / (template.size * template.std() * win.std()))


class TestCorrelate:
    """Test cases for correlate()"""

    def test_surface_matches_search_size(self):
        """Surface is exactly search.h x search.w"""
        template = GrayImage.from_array(_noise(5, 7, seed=1))
        search = GrayImage.from_array(_noise(30, 40, seed=2))

        surface, match = correlate(template, search)

        assert surface.shape == (30, 40)
        assert 0 <= match.x < 40
        assert 0 <= match.y < 30

    def test_exact_copy_found_at_top_left(self):
        """An embedded copy of the template is the best match with score ~1"""
        search_px = _noise(64, 80, seed=3)
        template_px = search_px[20:32, 30:46].copy()

        result = correlate(GrayImage.from_array(template_px), GrayImage.from_array(search_px))

        assert result.match.xy == (30, 20)
        assert result.match.score == pytest.approx(1.0, abs=1e-6)
        assert result.template_size == (16, 12)

    @pytest.mark.parametrize("shift", [0.25, -0.1, 3.0])
    def test_match_invariant_to_brightness_shift(self, shift):
        """Adding a constant to the search image does not move the match"""
        search_px = _noise(50, 60, seed=4)
        template_px = search_px[10:18, 22:35].copy()
        template = GrayImage.from_array(template_px)

        base_surface, base_match = correlate(template, GrayImage.from_array(search_px))
        surface, match = correlate(template, GrayImage.from_array(search_px + shift))

        assert match.xy == base_match.xy
        assert np.allclose(surface, base_surface, atol=1e-6)

    def test_scores_agree_with_spatial_ncc(self):
        """FFT scores equal direct NCC at anchors fully inside the search image"""
        template_px = _noise(6, 9, seed=5)
        search_px = _noise(40, 50, seed=6)

        surface = ncc_surface(template_px, search_px)

        for x, y in [(0, 0), (3, 17), (41, 34), (20, 5)]:
            assert surface[y, x] == pytest.approx(_direct_ncc(template_px, search_px, x, y), abs=1e-9)

    def test_scores_bounded(self):
        """Every score lies in [-1, 1]"""
        surface = ncc_surface(_noise(4, 4, seed=7), _noise(32, 32, seed=8))
        assert surface.min() >= -1.0
        assert surface.max() <= 1.0

    def test_template_wider_than_search(self):
        """Template wider than search fails naming the width"""
        template = GrayImage.from_array(_noise(5, 41), source="tpl.png")
        search = GrayImage.from_array(_noise(30, 40), source="search.png")

        with pytest.raises(InvalidInputError, match="width"):
            correlate(template, search)

    def test_template_taller_than_search(self):
        """Template taller than search fails naming the height"""
        template = GrayImage.from_array(_noise(31, 5), source="tpl.png")
        search = GrayImage.from_array(_noise(30, 40), source="search.png")

        with pytest.raises(InvalidInputError, match="height") as excinfo:
            correlate(template, search)
        assert excinfo.value.path == "tpl.png"

    def test_uniform_template_is_degenerate(self):
        """Zero template std raises ComputationError"""
        template = GrayImage.from_array(np.full((10, 10), 0.5))
        search = GrayImage.from_array(_noise(100, 100))

        with pytest.raises(ComputationError, match="standard deviation"):
            correlate(template, search)

    def test_flat_search_scores_zero(self):
        """Undefined scores over a constant search image are reported as 0"""
        template = GrayImage.from_array(_noise(5, 5, seed=9))
        search = GrayImage.from_array(np.full((20, 20), 0.5))

        surface, match = correlate(template, search)

        assert np.count_nonzero(surface) == 0
        assert match == Match(x=0, y=0, score=0.0)

    def test_non_finite_search_rejected(self):
        """NaN samples in the search image raise ComputationError"""
        search_px = _noise(20, 20)
        search_px[3, 4] = np.nan
        with pytest.raises(ComputationError):
            ncc_surface(_noise(4, 4, seed=1), search_px)

    def test_variance_floor_option(self):
        """A floor above the local search variance marks every anchor undefined"""
        template = GrayImage.from_array(_noise(4, 4, seed=10))
        search = GrayImage.from_array(_noise(16, 16, seed=11) * 1e-3)

        surface, _ = correlate(template, search, CorrelationOptions(variance_floor=1e-4))

        assert not surface.any()

    def test_small_template_std_below_variance_floor(self):
        """A low-contrast template is usable even when its variance is under variance_floor"""
        search_px = _noise(40, 40, seed=12)
        template_px = 0.5 + 0.05 * (search_px[10:18, 20:28] - 0.5)
        assert template_px.var() < 1e-3

        result = correlate(
            GrayImage.from_array(template_px),
            GrayImage.from_array(search_px),
            CorrelationOptions(variance_floor=1e-3),
        )

        assert result.match.xy == (20, 10)
        assert result.match.score == pytest.approx(1.0, abs=1e-6)


class TestGrayPatchScenario:
    """10x10 gray patch pasted into a 100x100 uniform gray field"""

    @pytest.fixture
    def images(self):
        rng = np.random.default_rng(42)
        patch = rng.integers(60, 200, size=(10, 10), dtype=np.uint8)
        field = np.full((100, 100), 128, dtype=np.uint8)
        field[25:35, 40:50] = patch
        return gray_from_array(patch, "patch"), gray_from_array(field, "field")

    def test_match_location(self, images):
        """Best match is the paste location"""
        template, search = images
        surface, match = correlate(template, search)

        assert surface.shape == (100, 100)
        assert match.xy == (40, 25)
        assert match.score == pytest.approx(1.0, abs=1e-6)


class TestLocateMax:
    """Test cases for locate_max()"""

    def test_first_occurrence_in_row_major_order(self):
        """Ties resolve to the earliest row, then the earliest column"""
        surface = np.zeros((4, 5))
        surface[2, 1] = 0.9
        surface[1, 3] = 0.9
        surface[3, 0] = 0.9

        assert locate_max(surface) == Match(x=3, y=1, score=0.9)

    def test_near_ties_resolve_row_major(self):
        """Scores within round-off of the maximum count as tied"""
        surface = np.zeros((4, 5))
        surface[1, 3] = 0.9
        surface[3, 0] = 0.9 + 5e-10

        assert locate_max(surface) == Match(x=3, y=1, score=0.9)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4, 5, 6, 7])
    def test_duplicate_copies_pick_first(self, seed):
        """Two identical copies of the template: the earlier one in row-major order wins"""
        rng = np.random.default_rng(seed)
        template_px = rng.random((8, 8))
        search_px = rng.random((60, 80))
        search_px[10:18, 5:13] = template_px
        search_px[30:38, 50:58] = template_px

        result = correlate(GrayImage.from_array(template_px), GrayImage.from_array(search_px))

        assert result.match.xy == (5, 10)
        assert result.match.score == pytest.approx(1.0, abs=1e-6)

    def test_empty_surface(self):
        with pytest.raises(ComputationError):
            locate_max(np.zeros((0, 0)))


class TestTemplateStats:
    """Test cases for template_stats()"""

    def test_population_statistics(self):
        """Mean and population std over all samples"""
        stats = template_stats(np.array([[0.0, 1.0], [0.0, 1.0]]))

        assert stats.mean == pytest.approx(0.5)
        assert stats.std == pytest.approx(0.5)
        assert stats.count == 4

    def test_stats_are_frozen(self):
        stats = template_stats(np.ones((2, 2)))
        with pytest.raises(AttributeError):
            stats.mean = 2.0
