#!/usr/bin/env python3
"""Command-line interface for plot curve digitizing."""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .core.calibration import CalibrationInput, snap_to_tick
from .core.exporter import DataExporter
from .core.geometry import Point, Rect
from .core.session import DigitizerSession, TraceSettings
from .utils.config import config
from .utils.image_utils import crop_buffer, draw_overlay, load_image, save_overlay


def print_banner():
    """Print application banner."""
    print("""
╔═══════════════════════════════════════════════════════════╗
║          CURVE-DIGITIZER v{version}                          ║
║     Extract an X,Y data series from a plot image          ║
╚═══════════════════════════════════════════════════════════╝
""".format(version=__version__))


def print_detection_report(detection):
    """Print located axes and ticks."""
    print("\n" + "="*60)
    print("AXIS DETECTION")
    print("="*60)
    print(f"  Otsu threshold: {detection.threshold}")
    print(f"  X axis row: {detection.x_axis_row:g}")
    print(f"  Y axis column: {detection.y_axis_column:g}")
    xs = ", ".join(f"{t.x:.1f}" for t in detection.tick_points_x)
    ys = ", ".join(f"{t.y:.1f}" for t in detection.tick_points_y)
    print(f"  X ticks ({len(detection.tick_points_x)}): {xs or '-'}")
    print(f"  Y ticks ({len(detection.tick_points_y)}): {ys or '-'}")


def print_series_sample(points):
    """Print first and last points of the digitized series."""
    print("\n" + "="*60)
    print("SERIES (first 10 and last 5 points)")
    print("="*60)
    for p in points[:10]:
        print(f"  X: {p.x:10.4f}  Y: {p.y:10.4f}")
    if len(points) > 15:
        print("  ...")
        for p in points[-5:]:
            print(f"  X: {p.x:10.4f}  Y: {p.y:10.4f}")


def _rect(values) -> Rect:
    return Rect(*values)


def _point(values) -> Point:
    return Point(*values)


def _calibration_point(click: Point, ticks, snap: bool, name: str) -> Point:
    if not snap:
        return click
    snapped = snap_to_tick(click, ticks)
    if snapped is None:
        raise ValueError(
            f"No detected tick within {config.SNAP_RADIUS:g}px of {name} "
            f"({click.x:g}, {click.y:g})"
        )
    return snapped


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='curve-digitize',
        description='Extract an X,Y data series from a plot image',
        epilog=(
            'Example: curve-digitize plot.png --x-roi 0 130 200 40 --y-roi 0 0 40 200 '
            '--x-cal 20 150 180 150 --x-values 0 10 --y-cal 20 150 20 20 --y-values 0 1 '
            '--seed 60 80 --seed 90 70 --seed 120 60 -o series.csv'
        )
    )

    parser.add_argument('image', help='Path to the plot image (PNG or JPG)')

    parser.add_argument('--crop', nargs=4, type=float, metavar=('X', 'Y', 'W', 'H'),
                        help='Plot region to crop first; all other coordinates refer to the crop')
    parser.add_argument('--x-roi', nargs=4, type=float, required=True,
                        metavar=('X', 'Y', 'W', 'H'), help='Region around the X axis')
    parser.add_argument('--y-roi', nargs=4, type=float, required=True,
                        metavar=('X', 'Y', 'W', 'H'), help='Region around the Y axis')

    parser.add_argument('--x-cal', nargs=4, type=float, required=True,
                        metavar=('PX1', 'PY1', 'PX2', 'PY2'),
                        help='Pixel positions of the two X calibration points')
    parser.add_argument('--x-values', nargs=2, type=float, required=True,
                        metavar=('X1', 'X2'), help='Data values of the X calibration points')
    parser.add_argument('--y-cal', nargs=4, type=float, required=True,
                        metavar=('PX1', 'PY1', 'PX2', 'PY2'),
                        help='Pixel positions of the two Y calibration points')
    parser.add_argument('--y-values', nargs=2, type=float, required=True,
                        metavar=('Y1', 'Y2'), help='Data values of the Y calibration points')
    parser.add_argument('--snap', action='store_true',
                        help=f'Snap calibration points to the nearest detected tick '
                             f'(within {config.SNAP_RADIUS:g}px)')

    parser.add_argument('--seed', nargs=2, type=float, action='append', required=True,
                        metavar=('X', 'Y'), help='A pixel on the curve (give exactly 3)')
    parser.add_argument('--threshold', type=float, default=config.CURVE_THRESHOLD,
                        help=f'RGB color distance threshold (default: {config.CURVE_THRESHOLD:g})')
    parser.add_argument('--mode', choices=['centerline', 'median'], default=config.TRACE_MODE,
                        help=f'Row picked inside a run (default: {config.TRACE_MODE})')
    parser.add_argument('--max-jump', type=float, default=config.MAX_JUMP,
                        help=f'Largest row jump between columns (default: {config.MAX_JUMP:g})')
    parser.add_argument('--axis-band', type=float, default=config.AXIS_BAND,
                        help=f'Pixels excluded around each axis (default: {config.AXIS_BAND:g})')
    parser.add_argument('--tick-radius', type=float, default=config.TICK_RADIUS,
                        help=f'Pixels excluded around each tick (default: {config.TICK_RADIUS:g})')
    parser.add_argument('--reverse-x', action='store_true',
                        help='Output the series in descending X order')

    parser.add_argument('-o', '--output', default=None,
                        help='Output CSV file (default: print CSV to stdout)')
    parser.add_argument('--overlay', default=None,
                        help='Write an overlay image of detections and the traced curve')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress messages')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def run(args) -> int:
    """Run the digitizing pipeline for parsed arguments; returns an exit code."""
    if len(args.seed) != 3:
        raise ValueError(f"Exactly 3 seeds are required, got {len(args.seed)}")

    # progress goes to stdout only when the CSV does not
    show = not args.quiet and bool(args.output)

    buffer = load_image(args.image)
    if args.crop:
        buffer = crop_buffer(buffer, _rect(args.crop))
    if show:
        print(f"Image size: {buffer.width}x{buffer.height}")

    settings = TraceSettings(
        threshold=args.threshold,
        mode=args.mode,
        max_jump=args.max_jump,
        reverse_x=args.reverse_x,
        axis_band=args.axis_band,
        tick_radius=args.tick_radius,
    )
    session = DigitizerSession(settings=settings).with_buffer(buffer)
    session = session.with_axis_rois(_rect(args.x_roi), _rect(args.y_roi))
    detection = session.detection

    if show:
        print_detection_report(detection)

    x_cal = args.x_cal
    y_cal = args.y_cal
    calibration = CalibrationInput(
        px_x1=_calibration_point(_point(x_cal[:2]), detection.tick_points_x, args.snap, "X1"),
        px_x2=_calibration_point(_point(x_cal[2:]), detection.tick_points_x, args.snap, "X2"),
        px_y1=_calibration_point(_point(y_cal[:2]), detection.tick_points_y, args.snap, "Y1"),
        px_y2=_calibration_point(_point(y_cal[2:]), detection.tick_points_y, args.snap, "Y2"),
        x1=args.x_values[0],
        x2=args.x_values[1],
        y1=args.y_values[0],
        y2=args.y_values[1],
    )
    session = session.with_calibration(calibration)
    session = session.with_seeds(_point(s) for s in args.seed)

    if args.overlay:
        overlay = draw_overlay(
            buffer, detection, list(session.trace),
            series=session.data_points, mapper=session.mapper,
        )
        save_overlay(args.overlay, overlay)

    points = session.data_points
    if not points:
        print("Error: No curve found at the seed positions", file=sys.stderr)
        return 1

    if show:
        c = session.color
        print(f"\nCurve color: rgb({c.r},{c.g},{c.b})")
        print_series_sample(points)

    exporter = DataExporter(points)
    if args.output:
        path = exporter.to_csv(args.output)
        if show:
            print(f"\n✓ Extraction complete!")
            print(f"  Output: {path}")
            print(f"  Points: {len(points)}")
    else:
        sys.stdout.write(exporter.to_csv_text())

    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Error: Image file not found: {args.image}", file=sys.stderr)
        sys.exit(1)

    if not args.quiet and args.output:
        print_banner()

    try:
        sys.exit(run(args))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
