# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""Integration tests for the estimate() entry point."""

import json

import numpy as np
import pytest

from tuftcalc import (
    ClusterConfig,
    Estimate,
    MinAreaPolicy,
    Pricing,
    YarnParams,
    estimate,
)


def _two_tone_image(rgb1, rgb2, height=20, width=40):
    """Create an RGBA image that is half one color, half another."""
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[:, :width // 2] = [*rgb1, 255]
    img[:, width // 2:] = [*rgb2, 255]
    return img


def _rug_with_border():
    """Navy field with a cream border and a transparent corner notch."""
    img = np.full((30, 40, 4), [29, 53, 87, 255], dtype=np.uint8)
    img[:3] = [241, 250, 238, 255]
    img[-3:] = [241, 250, 238, 255]
    img[:5, :5, 3] = 0
    return img


class TestEstimateBasic:

    def test_returns_estimate(self):
        e = estimate(_two_tone_image((255, 0, 0), (0, 0, 255)))
        assert isinstance(e, Estimate)
        assert len(e.yarn.records) == len(e.analysis.clusters) == 2

    def test_records_follow_cluster_order(self):
        e = estimate(_rug_with_border(), ClusterConfig(width_cm=120, height_cm=90))
        assert [r.id for r in e.yarn.records] == [c.id for c in e.analysis.clusters]
        assert e.yarn.records[0].hex == "#1D3557"

    def test_yarn_areas_match_clusters(self):
        e = estimate(_rug_with_border(), ClusterConfig(width_cm=120, height_cm=90))
        for r, c in zip(e.yarn.records, e.analysis.clusters):
            assert r.area_cm2 == pytest.approx(c.area_cm2)
        assert e.yarn.totals.area_cm2 == pytest.approx(e.analysis.totals.area_cm2)

    def test_transparent_notch_not_tufted(self):
        cfg = ClusterConfig(width_cm=40, height_cm=30, min_area=MinAreaPolicy.percent(0))
        e = estimate(_rug_with_border(), cfg)
        # 1 cm² per pixel, 25 transparent pixels
        assert e.analysis.totals.area_cm2 == pytest.approx(1200.0 - 25.0)


class TestEstimateFigures:

    def test_known_numbers(self):
        cfg = ClusterConfig(tolerance=0, width_cm=40, height_cm=20)
        params = YarnParams(pile_height_mm=12, strands=2, wastage_percent=15)
        e = estimate(_two_tone_image((255, 0, 0), (0, 0, 255)), cfg, params, Pricing(price_per_kg=50))

        # 800 px over 800 cm², each color 400 cm²; 0.12 m/cm², 0.5 g/m default
        for r in e.yarn.records:
            assert r.area_cm2 == pytest.approx(400.0)
            assert r.yarn_length_m == pytest.approx(96.0)
            assert r.yarn_weight_with_waste_g == pytest.approx(55.2)
            assert r.cost == pytest.approx(2.76)
        assert e.yarn.totals.weight_with_waste_g == pytest.approx(110.4)
        assert e.yarn.totals.cost == pytest.approx(5.52)

    def test_unknown_size_gives_zero_yarn(self):
        e = estimate(_two_tone_image((255, 0, 0), (0, 0, 255)))
        assert e.yarn.totals.length_m == 0.0
        assert e.yarn.totals.weight_with_waste_g == 0.0


class TestDegenerateInput:

    def test_empty_raster(self):
        e = estimate(np.zeros((0, 0, 4), dtype=np.uint8), ClusterConfig(width_cm=10, height_cm=10))
        assert e.is_empty
        assert e.yarn.records == ()
        assert e.yarn.totals.weight_with_waste_g == 0.0

    def test_fully_transparent(self):
        img = np.zeros((5, 5, 4), dtype=np.uint8)
        e = estimate(img, ClusterConfig(width_cm=10, height_cm=10), pricing=Pricing(price_per_kg=10))
        assert e.is_empty
        assert e.analysis.totals.pixels_total == 25
        assert e.analysis.totals.pixels_valid == 0
        assert e.yarn.totals.cost == 0.0


class TestEstimateDeterminism:

    def test_same_input_same_output(self):
        img = _rug_with_border()
        cfg = ClusterConfig(width_cm=120, height_cm=90)
        assert estimate(img, cfg) == estimate(img, cfg)


class TestSerialization:

    def test_json_has_no_labels(self):
        e = estimate(_rug_with_border(), ClusterConfig(width_cm=120, height_cm=90))
        data = json.loads(e.to_json())
        assert "labels" not in data["analysis"]
        assert len(data["yarn"]["records"]) == len(e.yarn.records)

    def test_json_roundtrip(self):
        e = estimate(
            _rug_with_border(),
            ClusterConfig(width_cm=120, height_cm=90),
            YarnParams(mode="measured", lines_per_cm=3, stitches_per_cm=4),
            Pricing(skein_mass_g=100, skein_price=4.5),
        )
        assert Estimate.from_json(e.to_json()) == e

    def test_raw_bytes(self):
        img = _two_tone_image((255, 0, 0), (0, 0, 255), height=2, width=4)
        e = estimate(img.tobytes(), ClusterConfig(tolerance=0), width=4, height=2)
        assert len(e.yarn.records) == 2
