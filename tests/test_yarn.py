# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""Tests for the pile model, price resolution and per-color yarn figures."""

import pytest

from tuftcalc.schema import ClusterResult, DensityPath, Provenance
from tuftcalc.yarn import (
    DensityMode,
    PileType,
    Pricing,
    YarnParams,
    compute_yarn_constants,
    compute_yarn_for_clusters,
    resolve_mass_per_length,
    resolve_price,
)
from tuftcalc.yarn.constants import DEFAULT_G_PER_M, LOOP_FACTOR


def _cluster(area_cm2, cluster_id=0, rgb=(200, 30, 30), pixel_count=100, percent=50.0):
    return ClusterResult(
        id=cluster_id,
        rgb=rgb,
        hex="#{:02X}{:02X}{:02X}".format(*rgb),
        pixel_count=pixel_count,
        percent_valid=percent,
        area_cm2=area_cm2,
    )


class TestYarnParams:

    def test_defaults(self):
        p = YarnParams()
        assert p.mode is DensityMode.PRESET
        assert p.pile_type is PileType.CUT
        assert p.pile_height_mm == 12.0
        assert p.strands == 2
        assert p.wastage_percent == 15.0

    def test_mode_aliases(self):
        assert YarnParams(mode="advanced").mode is DensityMode.MEASURED
        assert YarnParams(mode="beginner").mode is DensityMode.PRESET
        assert YarnParams(mode="Measured").mode is DensityMode.MEASURED
        assert YarnParams(mode="nonsense").mode is DensityMode.PRESET

    def test_strands_rounded_half_up_and_clamped(self):
        assert YarnParams(strands=2.5).strands == 3
        assert YarnParams(strands=0).strands == 1
        assert YarnParams(strands=-4).strands == 1
        assert YarnParams(strands="3").strands == 3

    def test_negatives_clamped(self):
        p = YarnParams(wastage_percent=-10, pile_height_mm=-3)
        assert p.wastage_percent == 0.0
        assert p.pile_height_mm == 0.0

    def test_non_positive_yarn_specs_ignored(self):
        p = YarnParams(yarn_g_per_m=0, yarn_m_per_kg=-5)
        assert p.yarn_g_per_m is None
        assert p.yarn_m_per_kg is None

    def test_from_dict_form_values(self):
        p = YarnParams.from_dict({
            "mode": "advanced",
            "lines_per_cm": "4",
            "stitches_per_cm": "5",
            "pile_type": "loop",
            "pile_height_mm": "",
            "yarn_m_per_kg": "2000",
        })
        assert p.mode is DensityMode.MEASURED
        assert p.lines_per_cm == 4.0
        assert p.pile_type is PileType.LOOP
        assert p.pile_height_mm == 12.0
        assert p.yarn_m_per_kg == 2000.0
        assert p.strands == 2


class TestMassPerLength:

    def test_explicit_wins(self):
        r = resolve_mass_per_length(YarnParams(yarn_g_per_m=0.8, yarn_m_per_kg=2000))
        assert r.value == pytest.approx(0.8)
        assert r.source is Provenance.EXPLICIT

    def test_derived_from_length_per_mass(self):
        r = resolve_mass_per_length(YarnParams(yarn_m_per_kg=2000))
        assert r.value == pytest.approx(0.5)
        assert r.source is Provenance.DERIVED

    def test_default(self):
        r = resolve_mass_per_length(YarnParams())
        assert r.value == DEFAULT_G_PER_M
        assert r.source is Provenance.DEFAULT

    @pytest.mark.parametrize("m_per_kg", [350.0, 1234.5, 2000.0, 9876.0])
    def test_roundtrip(self, m_per_kg):
        constants = compute_yarn_constants(YarnParams(yarn_m_per_kg=m_per_kg))
        assert constants.m_per_kg_single == pytest.approx(m_per_kg, rel=1e-12)


class TestPresetModel:

    def test_baseline(self):
        c = compute_yarn_constants(YarnParams())
        assert c.density_path is DensityPath.PRESET
        # 1200 m/m² at medium, cut, 12 mm
        assert c.m_per_cm2_single == pytest.approx(0.12)

    @pytest.mark.parametrize("preset,expected", [
        ("low", 0.096),
        ("medium", 0.12),
        ("high", 0.15),
        ("unknown", 0.12),
    ])
    def test_preset_tiers(self, preset, expected):
        c = compute_yarn_constants(YarnParams(density_preset=preset))
        assert c.m_per_cm2_single == pytest.approx(expected)

    def test_pile_height_scales_linearly(self):
        c = compute_yarn_constants(YarnParams(pile_height_mm=24))
        assert c.m_per_cm2_single == pytest.approx(0.24)

    def test_zero_pile_height_uses_baseline(self):
        c = compute_yarn_constants(YarnParams(pile_height_mm=0))
        assert c.m_per_cm2_single == pytest.approx(0.12)

    def test_loop_uses_less_yarn_than_cut(self):
        cut = compute_yarn_constants(YarnParams(pile_type="cut"))
        loop = compute_yarn_constants(YarnParams(pile_type="loop"))
        assert loop.m_per_cm2_single < cut.m_per_cm2_single
        assert loop.m_per_cm2_single == pytest.approx(cut.m_per_cm2_single * LOOP_FACTOR)

    def test_measured_mode_without_densities_falls_back(self):
        c = compute_yarn_constants(YarnParams(mode="measured", lines_per_cm=4))
        assert c.density_path is DensityPath.PRESET
        assert c.m_per_cm2_single == pytest.approx(0.12)

    def test_densities_ignored_in_preset_mode(self):
        c = compute_yarn_constants(YarnParams(mode="preset", lines_per_cm=4, stitches_per_cm=5))
        assert c.density_path is DensityPath.PRESET


class TestMeasuredModel:

    def test_backing_plus_pile(self):
        c = compute_yarn_constants(YarnParams(
            mode="measured", lines_per_cm=4, stitches_per_cm=5, pile_height_mm=10,
        ))
        assert c.density_path is DensityPath.MEASURED
        # 0.01 × 4 + 2 × 0.010 × 4 × 5
        assert c.m_per_cm2_single == pytest.approx(0.44)

    def test_loop_factor_applies_to_pile_term(self):
        c = compute_yarn_constants(YarnParams(
            mode="measured", lines_per_cm=4, stitches_per_cm=5, pile_height_mm=10,
            pile_type="loop",
        ))
        assert c.m_per_cm2_single == pytest.approx(0.04 + 0.4 * LOOP_FACTOR)

    def test_zero_density_falls_back(self):
        c = compute_yarn_constants(YarnParams(mode="measured", lines_per_cm=0, stitches_per_cm=5))
        assert c.density_path is DensityPath.PRESET

    def test_zero_pile_height_leaves_backing(self):
        c = compute_yarn_constants(YarnParams(
            mode="measured", lines_per_cm=4, stitches_per_cm=5, pile_height_mm=0,
        ))
        assert c.m_per_cm2_single == pytest.approx(0.04)


class TestConstantsFields:

    def test_strands_and_wastage(self):
        c = compute_yarn_constants(YarnParams(strands=3, wastage_percent=20))
        assert c.strands == 3
        assert c.wastage == pytest.approx(0.2)

    def test_default_params(self):
        assert compute_yarn_constants() == compute_yarn_constants(YarnParams())


class TestPriceResolution:

    def test_none(self):
        assert resolve_price(None) is None
        assert resolve_price(Pricing()) is None

    def test_explicit(self):
        r = resolve_price(Pricing(price_per_kg=25.0))
        assert r.value == 25.0
        assert r.source is Provenance.EXPLICIT

    def test_explicit_zero_is_a_price(self):
        r = resolve_price(Pricing(price_per_kg=0))
        assert r is not None
        assert r.value == 0.0

    def test_skein(self):
        r = resolve_price(Pricing(skein_mass_g=100, skein_price=10))
        assert r.value == pytest.approx(100.0)
        assert r.source is Provenance.DERIVED

    def test_explicit_beats_skein(self):
        r = resolve_price(Pricing(price_per_kg=30, skein_mass_g=100, skein_price=10))
        assert r.value == 30.0

    def test_incomplete_skein(self):
        assert resolve_price(Pricing(skein_mass_g=100)) is None
        assert resolve_price(Pricing(skein_mass_g=0, skein_price=10)) is None

    def test_from_dict(self):
        p = Pricing.from_dict({"price_per_kg": "", "skein_mass_g": "100", "skein_price": "4.5"})
        assert p.price_per_kg is None
        assert resolve_price(p).value == pytest.approx(45.0)


class TestYarnForClusters:

    def test_per_cluster_formulas(self):
        constants = compute_yarn_constants(YarnParams())
        est = compute_yarn_for_clusters([_cluster(100.0)], constants)
        r = est.records[0]

        assert r.yarn_length_m_single == pytest.approx(12.0)
        assert r.yarn_length_m == pytest.approx(24.0)
        assert r.yarn_weight_g == pytest.approx(12.0)
        assert r.yarn_weight_with_waste_g == pytest.approx(13.8)
        assert r.cost is None

    def test_cluster_fields_carried(self):
        c = _cluster(10.0, cluster_id=4, rgb=(1, 2, 3), pixel_count=7, percent=3.5)
        r = compute_yarn_for_clusters([c], compute_yarn_constants()).records[0]
        assert r.cluster == c

    def test_cost(self):
        est = compute_yarn_for_clusters(
            [_cluster(100.0)], compute_yarn_constants(), Pricing(price_per_kg=20.0),
        )
        assert est.records[0].cost == pytest.approx(13.8 / 1000 * 20.0)

    def test_zero_price_gives_zero_cost(self):
        est = compute_yarn_for_clusters(
            [_cluster(100.0)], compute_yarn_constants(), Pricing(price_per_kg=0),
        )
        assert est.records[0].cost == 0.0
        assert est.totals.cost == 0.0

    def test_unpriced_totals_cost_is_none(self):
        est = compute_yarn_for_clusters([_cluster(1.0), _cluster(2.0)], compute_yarn_constants())
        assert est.totals.cost is None

    def test_skein_matches_direct_price(self):
        clusters = [_cluster(37.5, 0), _cluster(120.0, 1)]
        constants = compute_yarn_constants(YarnParams(strands=3, yarn_m_per_kg=1800))
        via_skein = compute_yarn_for_clusters(
            clusters, constants, Pricing(skein_mass_g=100, skein_price=10),
        )
        direct = compute_yarn_for_clusters(
            clusters, constants, Pricing(price_per_kg=10 / 100 * 1000),
        )
        for a, b in zip(via_skein.records, direct.records):
            assert a.cost == pytest.approx(b.cost)

    def test_totals_are_sums(self):
        clusters = [_cluster(12.5, 0), _cluster(40.0, 1), _cluster(3.25, 2)]
        est = compute_yarn_for_clusters(
            clusters,
            compute_yarn_constants(YarnParams(pile_type="loop", strands=3)),
            Pricing(price_per_kg=18.0),
        )
        t = est.totals
        assert t.area_cm2 == pytest.approx(sum(r.area_cm2 for r in est.records))
        assert t.length_m == pytest.approx(sum(r.yarn_length_m for r in est.records))
        assert t.weight_g == pytest.approx(sum(r.yarn_weight_g for r in est.records))
        assert t.weight_with_waste_g == pytest.approx(
            sum(r.yarn_weight_with_waste_g for r in est.records)
        )
        assert t.cost == pytest.approx(sum(r.cost for r in est.records))

    def test_empty_priced_costs_zero(self):
        est = compute_yarn_for_clusters([], compute_yarn_constants(), Pricing(price_per_kg=5))
        assert est.records == ()
        assert est.totals.area_cm2 == 0.0
        assert est.totals.cost == 0.0
        assert est.price.value == 5.0

    def test_empty_unpriced_cost_is_none(self):
        est = compute_yarn_for_clusters([], compute_yarn_constants())
        assert est.totals.cost is None

    def test_zero_area(self):
        r = compute_yarn_for_clusters([_cluster(0.0)], compute_yarn_constants()).records[0]
        assert r.yarn_length_m == 0.0
        assert r.yarn_weight_with_waste_g == 0.0
