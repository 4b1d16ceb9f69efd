"""Tests for geometric primitives."""

from phylo_explorer.layout.geometry import ORIGIN, Point, Rect


class TestPoint:
    def test_arithmetic(self):
        assert Point(1, 2) + Point(3, 4) == Point(4, 6)
        assert Point(5, 5) - Point(2, 3) == Point(3, 2)
        assert Point(1, 1) + ORIGIN == Point(1, 1)


class TestRect:
    def test_edges(self):
        r = Rect(10, 20, 30, 40)
        assert r.right == 40
        assert r.bottom == 60

    def test_inset(self):
        assert Rect(0, 0, 100, 80).inset(10) == Rect(10, 10, 80, 60)

    def test_clamp_box_inside_is_unchanged(self):
        area = Rect(0, 0, 100, 100)
        assert area.clamp_box(Point(10, 10), 20, 20) == Point(10, 10)

    def test_clamp_box_pulls_back(self):
        area = Rect(0, 0, 100, 100)
        assert area.clamp_box(Point(90, 95), 20, 20) == Point(80, 80)
        assert area.clamp_box(Point(-5, -5), 20, 20) == Point(0, 0)

    def test_clamp_box_larger_than_area(self):
        area = Rect(10, 10, 50, 50)
        assert area.clamp_box(Point(30, 30), 100, 100) == Point(10, 10)

