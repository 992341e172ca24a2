"""Tests for the force-directed layout."""

import logging
import math
import re

import jax
import jax.numpy as jnp
import pytest

import hyperlayout as hl
from hyperlayout.layout import LayoutNode, from_parents
from hyperlayout.manifolds import isometry_mappings, poincare

jax.config.update("jax_enable_x64", True)


@pytest.fixture
def edge():
    """A root at the origin with one child well inside the spring length."""
    nodes = [
        LayoutNode(id="root", children=["c"], position=jnp.array([0.0, 0.0])),
        LayoutNode(id="c", parent="root", depth=1, position=jnp.array([0.3, 0.0])),
    ]
    return {node.id: node for node in nodes}


@pytest.fixture
def laid_out_tree():
    graph = from_parents({"root": None, "a": "root", "b": "root", "a1": "a", "a2": "a", "b1": "b", "a1x": "a1"})
    hl.layout_hyperbolic(graph)
    return graph


def _distance(graph, a, b):
    return float(poincare.distance(graph[a].position, graph[b].position))


def _net_force(d, config):
    # Outward force on a lone child at distance d from its parent
    return config.spring_repulsion / d**2 - config.spring_attraction * (d - config.edge_length)


class TestConvergence:
    def test_reaches_spring_equilibrium(self, edge, caplog):
        config = hl.DEFAULT_LAYOUT_CONFIG
        with caplog.at_level(logging.DEBUG, logger="hyperlayout.layout.force"):
            hl.force_directed_layout(edge)
        d = _distance(edge, "root", "c")
        assert abs(_net_force(d, config)) <= config.spring_tolerance
        assert float(edge["c"].position[1]) == pytest.approx(0.0, abs=1e-12)
        passes = int(re.search(r"stopped after (\d+) passes", caplog.text).group(1))
        assert passes < config.spring_iterations

    def test_single_pass_moves_the_capped_length(self, edge):
        config = hl.DEFAULT_LAYOUT_CONFIG.with_springs(iterations=1)
        before = _distance(edge, "root", "c")
        assert _net_force(before, config) > config.spring_max_step
        hl.force_directed_layout(edge, config=config)
        expected = before + config.spring_max_step * config.spring_damping
        assert _distance(edge, "root", "c") == pytest.approx(expected, abs=1e-9)

    def test_tolerance_stops_the_loop(self, edge):
        once = {
            k: LayoutNode(id=n.id, parent=n.parent, children=n.children, position=n.position) for k, n in edge.items()
        }
        hl.force_directed_layout(once, config=hl.DEFAULT_LAYOUT_CONFIG.with_springs(iterations=1))
        hl.force_directed_layout(edge, config=hl.DEFAULT_LAYOUT_CONFIG.with_springs(tolerance=1e9))
        assert jnp.allclose(edge["c"].position, once["c"].position, atol=1e-12)

    def test_zero_iterations(self, edge):
        result = hl.force_directed_layout(edge, config=hl.DEFAULT_LAYOUT_CONFIG.with_springs(iterations=0))
        assert jnp.allclose(result["c"], jnp.array([0.3, 0.0]))


class TestFixedNodes:
    def test_root_and_pins_never_move(self, laid_out_tree):
        root = laid_out_tree["root"].position
        pin = laid_out_tree["a1"].position
        result = hl.force_directed_layout(laid_out_tree, pinned_ids=["a1", "missing"])
        assert laid_out_tree["root"].position is root
        assert laid_out_tree["a1"].position is pin
        assert result["a1"] is pin

    def test_explicit_root(self, laid_out_tree):
        before = laid_out_tree["b"].position
        hl.force_directed_layout(laid_out_tree, root_id="b", config=hl.DEFAULT_LAYOUT_CONFIG.with_springs(iterations=3))
        assert laid_out_tree["b"].position is before
        assert not jnp.allclose(laid_out_tree["root"].position, 0.0)


class TestResults:
    def test_coincident_siblings_do_not_move_each_other(self):
        nodes = [
            LayoutNode(id="root", children=["x", "y"], position=jnp.array([0.0, 0.0])),
            LayoutNode(id="x", parent="root", position=jnp.array([0.6, 0.0])),
            LayoutNode(id="y", parent="root", position=jnp.array([0.6, 0.0])),
        ]
        graph = {node.id: node for node in nodes}
        hl.force_directed_layout(graph, config=hl.DEFAULT_LAYOUT_CONFIG.with_springs(iterations=2))
        assert jnp.allclose(graph["x"].position, graph["y"].position)
        assert float(graph["x"].position[1]) == pytest.approx(0.0, abs=1e-12)

    def test_close_siblings_spread_apart(self):
        nodes = [
            LayoutNode(id="root", children=["x", "y"], position=jnp.array([0.0, 0.0])),
            LayoutNode(id="x", parent="root", position=jnp.array([0.4, 0.02])),
            LayoutNode(id="y", parent="root", position=jnp.array([0.4, -0.02])),
        ]
        graph = {node.id: node for node in nodes}
        before = _distance(graph, "x", "y")
        hl.force_directed_layout(graph)
        assert _distance(graph, "x", "y") > before
        assert float(graph["x"].position[1]) == pytest.approx(-float(graph["y"].position[1]), abs=1e-9)

    def test_positions_stay_in_disk(self, laid_out_tree):
        result = hl.force_directed_layout(laid_out_tree)
        for position in result.values():
            assert bool(jnp.all(jnp.isfinite(position)))
            assert float(jnp.linalg.norm(position)) < 1.0

    def test_lorentz_written_back(self, laid_out_tree):
        hl.force_directed_layout(laid_out_tree, config=hl.DEFAULT_LAYOUT_CONFIG.with_springs(iterations=2))
        for node in laid_out_tree.values():
            assert jnp.allclose(node.lorentz, isometry_mappings.to_hyperboloid(node.position))

    def test_empty_and_unpositioned(self, edge):
        assert hl.force_directed_layout({}) == {}
        edge["v"] = LayoutNode(id="v", parent="root")
        result = hl.force_directed_layout(edge, config=hl.DEFAULT_LAYOUT_CONFIG.with_springs(iterations=2))
        assert "v" not in result
        assert edge["v"].position is None

    def test_spring_length_sets_the_equilibrium(self, edge):
        config = hl.DEFAULT_LAYOUT_CONFIG.with_springs(edge_length=2.0, iterations=200, tolerance=1e-6)
        hl.force_directed_layout(edge, config=config)
        d = _distance(edge, "root", "c")
        assert abs(_net_force(d, config)) < 1e-5
        assert d > 2.0
        assert math.isfinite(d)
