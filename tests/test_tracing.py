"""Tests for seeded curve tracing and result mapping."""

import unittest
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from curve_digitizer.core.curve_tracer import (
    Run,
    map_and_sort,
    representative_y,
    runs_in_column,
    seed_color,
    trace_curve,
)
from curve_digitizer.core.geometry import Color, DataPoint, Line, Point
from curve_digitizer.core.pixel_buffer import PixelBuffer
from synthetic import RED, blank

RED_COLOR = Color(*RED)


def line_buffer(rows=(29, 32), x_range=(10, 90), width=100, height=60):
    """White buffer with a red band covering rows [r0, r1) over x_range."""
    img = blank(width, height)
    img[rows[0]:rows[1], x_range[0]:x_range[1]] = RED
    return img


class TestRepresentativeY(unittest.TestCase):
    """Tests for the row chosen inside a run."""

    def test_centerline_is_midpoint(self):
        self.assertEqual(representative_y(Run(3, 6), "centerline"), 4.5)
        self.assertEqual(representative_y(Run(3, 5), "centerline"), 4)

    def test_median_is_floor_of_midpoint(self):
        """Test the rounding variant: floor of the run midpoint."""
        self.assertEqual(representative_y(Run(3, 6), "median"), 4)
        self.assertEqual(representative_y(Run(3, 5), "median"), 4)
        self.assertEqual(representative_y(Run(7, 7), "median"), 7)
        self.assertEqual(representative_y(Run(0, 9), "median"), 4)

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            representative_y(Run(0, 1), "mean")


class TestRunsInColumn(unittest.TestCase):
    """Tests for per-column run detection."""

    def setUp(self):
        img = blank(5, 30)
        img[10:13, 2] = RED
        img[20, 2] = RED
        img[28:30, 2] = RED
        img[15, 2] = (235, 20, 20)  # close to red
        img[17, 2] = (150, 0, 0)  # too far
        self.buffer = PixelBuffer(img)

    def test_runs(self):
        """Test run boundaries, including a run open at the last row."""
        runs = runs_in_column(self.buffer, 2, RED_COLOR, 45)
        self.assertEqual(runs, [Run(10, 12), Run(15, 15), Run(20, 20), Run(28, 29)])

    def test_threshold_is_strict(self):
        """Test that a distance equal to the threshold does not match."""
        img = blank(1, 3)
        img[1, 0] = (255, 30, 40)  # distance 50 from red
        buffer = PixelBuffer(img)
        self.assertEqual(runs_in_column(buffer, 0, RED_COLOR, 50), [])
        self.assertEqual(runs_in_column(buffer, 0, RED_COLOR, 50.01), [Run(1, 1)])

    def test_blacklist_splits_runs(self):
        """Test that blacklisted rows never match."""
        from curve_digitizer.core.blacklist import BlacklistMask

        mask = BlacklistMask(
            Line(Point(0, 11), Point(1, 0)), Line(Point(-100, 0), Point(0, 1)), [], [], 0.5, 0
        )
        runs = runs_in_column(self.buffer, 2, RED_COLOR, 45, mask)
        self.assertEqual(runs[:2], [Run(10, 10), Run(12, 12)])

    def test_empty_column(self):
        self.assertEqual(runs_in_column(self.buffer, 0, RED_COLOR, 45), [])


class TestSeedColor(unittest.TestCase):
    """Tests for the mean seed color."""

    def test_mean_is_rounded(self):
        img = blank(3, 1)
        img[0, 0] = (10, 0, 100)
        img[0, 1] = (11, 1, 100)
        img[0, 2] = (11, 0, 101)
        color = seed_color(PixelBuffer(img), [Point(0, 0), Point(1, 0), Point(2, 0)])
        self.assertEqual(color, Color(11, 0, 100))

    def test_seeds_are_clamped(self):
        img = blank(2, 2, (0, 0, 0))
        img[1, 1] = (30, 60, 90)
        color = seed_color(PixelBuffer(img), [Point(5, 9), Point(1.4, 0.6), Point(10, 10)])
        self.assertEqual(color, Color(30, 60, 90))


class TestCurveTracer(unittest.TestCase):
    """Tests for seeded tracing."""

    def test_straight_line(self):
        """Test tracing a horizontal band end to end."""
        buffer = PixelBuffer(line_buffer())
        seeds = [Point(20, 30), Point(50, 30), Point(80, 31)]
        points = trace_curve(buffer, seeds, RED_COLOR, threshold=45)

        self.assertEqual(len(points), 80)
        self.assertEqual([p.x for p in points], list(range(10, 90)))
        self.assertTrue(all(p.y == 30 for p in points))

    def test_default_color_from_seeds(self):
        buffer = PixelBuffer(line_buffer())
        seeds = [Point(20, 30), Point(50, 30), Point(80, 30)]
        self.assertEqual(trace_curve(buffer, seeds), trace_curve(buffer, seeds, RED_COLOR))

    def test_seed_order_does_not_matter(self):
        """Test that tracing is independent of pick order."""
        buffer = PixelBuffer(line_buffer())
        a = [Point(20, 30), Point(50, 30), Point(80, 30)]
        b = [Point(80, 30), Point(20, 30), Point(50, 30)]
        self.assertEqual(trace_curve(buffer, a, RED_COLOR), trace_curve(buffer, b, RED_COLOR))

    def test_deterministic(self):
        """Test that identical inputs give identical polylines."""
        img = line_buffer()
        img[40:42, 30:70] = RED
        buffer = PixelBuffer(img)
        seeds = [Point(20, 30), Point(50, 30), Point(80, 30)]
        first = trace_curve(buffer, seeds, RED_COLOR, 45, "median", 20)
        for _ in range(3):
            self.assertEqual(trace_curve(buffer, seeds, RED_COLOR, 45, "median", 20), first)

    def test_x_monotonic(self):
        """Test that the merged polyline has strictly increasing x."""
        img = blank(100, 80)
        for x in range(5, 95):
            y = 10 + x // 2
            img[y:y + 2, x] = RED
        buffer = PixelBuffer(img)
        points = trace_curve(buffer, [Point(30, 25), Point(50, 35), Point(70, 45)], RED_COLOR)

        xs = [p.x for p in points]
        self.assertEqual(xs, sorted(set(xs)))
        self.assertEqual(xs[0], 5)
        self.assertEqual(xs[-1], 94)

    def test_stays_on_predicted_curve(self):
        """Test that a parallel same-colored line is not picked."""
        img = line_buffer(rows=(19, 22))
        img[40:43, 10:90] = RED
        buffer = PixelBuffer(img)
        points = trace_curve(buffer, [Point(20, 20), Point(50, 21), Point(80, 20)], RED_COLOR)

        self.assertEqual(len(points), 80)
        self.assertTrue(all(p.y == 20 for p in points))

    def test_jump_limit_stops_direction(self):
        """Test that a jump larger than max_jump ends the trace at the prior column."""
        img = blank(100, 60)
        img[29:32, 10:50] = RED
        img[49:52, 50:90] = RED
        buffer = PixelBuffer(img)
        seeds = [Point(15, 30), Point(30, 30), Point(45, 30)]

        short = trace_curve(buffer, seeds, RED_COLOR, max_jump=5)
        self.assertEqual(short[0].x, 10)
        self.assertEqual(short[-1].x, 49)
        self.assertTrue(all(p.y == 30 for p in short))

        long = trace_curve(buffer, seeds, RED_COLOR, max_jump=25)
        self.assertEqual(long[-1].x, 89)
        self.assertEqual(long[-1].y, 50)

    def test_no_column_skipping(self):
        """Test that a one-column gap ends the trace."""
        img = line_buffer()
        img[:, 70] = (255, 255, 255)
        buffer = PixelBuffer(img)
        points = trace_curve(buffer, [Point(20, 30), Point(50, 30), Point(80, 30)], RED_COLOR)
        self.assertEqual(points[-1].x, 69)

    def test_median_mode(self):
        """Test that median mode floors even-thickness midpoints."""
        buffer = PixelBuffer(line_buffer(rows=(29, 31)))
        seeds = [Point(20, 30), Point(50, 30), Point(80, 30)]

        center = trace_curve(buffer, seeds, RED_COLOR, mode="centerline")
        median = trace_curve(buffer, seeds, RED_COLOR, mode="median")
        self.assertTrue(all(p.y == 29.5 for p in center))
        self.assertTrue(all(p.y == 29 for p in median))

    def test_empty_results(self):
        """Test the empty trace cases."""
        buffer = PixelBuffer(line_buffer())
        seeds = [Point(20, 30), Point(50, 30), Point(80, 30)]

        self.assertEqual(trace_curve(buffer, seeds[:2], RED_COLOR), [])
        self.assertEqual(trace_curve(None, seeds, RED_COLOR), [])
        # middle seed column has no red
        off = [Point(2, 30), Point(5, 30), Point(80, 30)]
        self.assertEqual(trace_curve(buffer, off, RED_COLOR), [])

    def test_blacklisted_seed_column(self):
        """Test that a curve hidden by the blacklist is not traced."""
        from curve_digitizer.core.blacklist import BlacklistMask

        buffer = PixelBuffer(line_buffer())
        mask = BlacklistMask(
            Line(Point(0, 30), Point(1, 0)), Line(Point(-100, 0), Point(0, 1)), [], [], 4, 0
        )
        seeds = [Point(20, 30), Point(50, 30), Point(80, 30)]
        self.assertEqual(trace_curve(buffer, seeds, RED_COLOR, blacklist=mask), [])

    def test_unknown_mode(self):
        buffer = PixelBuffer(line_buffer())
        with self.assertRaises(ValueError):
            trace_curve(buffer, [Point(20, 30)] * 3, RED_COLOR, mode="mean")


class DoubleX:
    def map(self, p):
        return DataPoint(2 * p.x, p.y)


class NegateX:
    def map(self, p):
        return DataPoint(-p.x, p.y)


class TestMapAndSort(unittest.TestCase):
    """Tests for mapping traced pixels to sorted data."""

    def test_reverse_x(self):
        result = map_and_sort([Point(0, 0), Point(10, 5)], DoubleX(), reverse_x=True)
        self.assertEqual([d.x for d in result], [20, 0])
        self.assertEqual(result[0], DataPoint(20, 5))

    def test_sorted_ascending(self):
        result = map_and_sort([Point(0, 0), Point(10, 5), Point(5, 1)], DoubleX())
        self.assertEqual([d.x for d in result], [0, 10, 20])

    def test_negative_scale_is_resorted(self):
        """Test that a flipped calibration still yields ascending X."""
        result = map_and_sort([Point(0, 0), Point(10, 5)], NegateX())
        self.assertEqual(result, [DataPoint(-10, 5), DataPoint(0, 0)])

    def test_empty(self):
        self.assertEqual(map_and_sort([], DoubleX(), True), [])


if __name__ == "__main__":
    unittest.main()
