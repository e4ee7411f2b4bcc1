import numpy as np
import pytest

from detection import detect_spots, validate_bounds, window_tables
from edge_detection import EDGE, NO_EDGE
from errors import RadiusOutOfRange
from ring_masks import create_mask, mask_param


def brute_force_sad(edges, mask, top, left):
    side = mask.shape[0]
    window = edges[top : top + side, left : left + side].astype(int)
    return int(np.abs(window - mask.astype(int)).sum())


class TestScenarios:
    def test_empty_raster_has_no_spots(self):
        edges = np.zeros((30, 30), dtype=np.uint8)
        result = detect_spots(edges, 4, 4)
        assert result.count == 0
        assert result.spots == []
        assert np.all(result.spot_map == NO_EDGE)
        assert not result.claims.any()

    def test_single_exact_ring(self, ring_raster):
        edges = ring_raster(30, [(4, (15, 15))])
        result = detect_spots(edges, 4, 4)

        assert result.count == 1
        spot = result.spots[0]
        assert spot.radius == 4
        assert spot.origin == (11, 11)
        assert spot.anchor == (16, 16)
        assert spot.center == (15, 15)
        assert spot.sad == 0

        expected_claims = np.zeros((30, 30), dtype=bool)
        expected_claims[11:20, 11:20] = True
        assert np.array_equal(result.claims, expected_claims)

        expected_map = np.zeros((30, 30), dtype=np.uint8)
        expected_map[11:20, 11:20] = edges[11:20, 11:20]
        assert np.array_equal(result.spot_map, expected_map)

    def test_two_separate_rings(self, ring_raster):
        edges = ring_raster(30, [(4, (10, 10)), (4, (20, 20))])
        result = detect_spots(edges, 4, 4)
        assert result.count == 2
        assert [s.center for s in result.spots] == [(10, 10), (20, 20)]
        assert np.array_equal(result.spot_map, edges)


class TestClaims:
    def test_overlapping_candidate_is_suppressed(self, ring_raster):
        # Two copies of the ring one column apart: both windows score well,
        # but the second anchor falls inside the first spot's footprint.
        edges = ring_raster(30, [(4, (15, 15)), (4, (16, 15))])
        mask = create_mask(4)
        threshold = mask_param(4).sad_threshold
        assert brute_force_sad(edges, mask, 11, 11) < threshold
        assert brute_force_sad(edges, mask, 11, 12) < threshold

        result = detect_spots(edges, 4, 4)
        assert result.count == 1
        assert result.spots[0].origin == (11, 11)

    def test_larger_radius_cannot_recount_claimed_region(self, ring_raster):
        edges = ring_raster(30, [(4, (15, 15))])
        for upper in (5, 6):
            result = detect_spots(edges, 4, upper)
            assert result.count == 1
            assert [s.radius for s in result.spots] == [4]

    def test_claims_are_monotonic_across_radii(self, ring_raster):
        edges = ring_raster(30, [(4, (15, 15))])
        narrow = detect_spots(edges, 4, 4)
        wide = detect_spots(edges, 4, 6)
        assert not np.any(narrow.claims & ~wide.claims)


class TestScanOrder:
    def test_empty_window_skips_ahead(self, ring_raster):
        # The radius-5 ring leaves rows 0-10 empty, so every column jumps from
        # anchor y=6 straight to y=18 and the perfect match at y=16 is never
        # tested.
        edges = ring_raster(30, [(5, (15, 15))])
        _, sad = window_tables(edges, create_mask(5))
        assert sad[10, 10] == 0

        assert detect_spots(edges, 5, 5).count == 0

    def test_same_ring_found_when_no_skip_happens(self, ring_raster):
        # Shifted up two rows, the ring reaches into the first window of every
        # column, so no rows are skipped.
        edges = ring_raster(30, [(5, (15, 13))])
        result = detect_spots(edges, 5, 5)
        assert result.count == 1
        assert result.spots[0].center == (15, 13)
        assert result.spots[0].sad == 0

    def test_windows_touching_far_border_are_not_scanned(self, ring_raster):
        # Anchors stop at width - radius - 1, so the last two window columns
        # on the right are never tested.
        inside = ring_raster(30, [(4, (23, 15))])
        assert detect_spots(inside, 4, 4).count == 1

        for cx in (24, 25):
            edges = ring_raster(30, [(4, (cx, 15))])
            assert detect_spots(edges, 4, 4).count == 0


class TestWindowTables:
    def test_matches_brute_force(self):
        rng = np.random.default_rng(4)
        edges = np.where(rng.random((16, 18)) < 0.3, EDGE, NO_EDGE).astype(np.uint8)
        edges[2, 3] = 17  # tables must not assume a binary raster
        mask = create_mask(4)
        empty, sad = window_tables(edges, mask)
        assert sad.shape == (8, 10)
        for top in range(sad.shape[0]):
            for left in range(sad.shape[1]):
                assert sad[top, left] == brute_force_sad(edges, mask, top, left)
                window = edges[top : top + 9, left : left + 9]
                assert empty[top, left] == (not window.any())


class TestValidation:
    @pytest.mark.parametrize("bounds", [(3, 4), (4, 12), (0, 0), (12, 12)])
    def test_out_of_range_bounds(self, bounds):
        with pytest.raises(RadiusOutOfRange):
            detect_spots(np.zeros((30, 30), dtype=np.uint8), *bounds)

    def test_inverted_bounds(self):
        with pytest.raises(ValueError):
            validate_bounds(6, 5)

    def test_small_raster_yields_nothing(self):
        result = detect_spots(np.full((8, 8), EDGE, dtype=np.uint8), 4, 11)
        assert result.count == 0
        assert result.spot_map.shape == (8, 8)


def test_detection_is_deterministic(ring_raster):
    rng = np.random.default_rng(5)
    edges = ring_raster(40, [(4, (12, 12)), (6, (27, 25))])
    edges[rng.random((40, 40)) < 0.02] = EDGE
    first = detect_spots(edges, 4, 11)
    second = detect_spots(edges, 4, 11)
    assert first.count == second.count
    assert first.spots == second.spots
    assert np.array_equal(first.spot_map, second.spot_map)
    assert np.array_equal(first.claims, second.claims)


def test_input_is_not_modified(ring_raster):
    edges = ring_raster(30, [(4, (15, 15))])
    before = edges.copy()
    detect_spots(edges, 4, 11)
    assert np.array_equal(edges, before)
