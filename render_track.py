"""
Racing Line Calibration Check

Projects a telemetry lap into track-map pixels and writes a PNG overlay plus a
CSV of the projected points, for checking a transform against the track map.

Usage:
  python3 render_track.py --data-file "Telemetry Data/lap_2.csv"
  python3 render_track.py --mode direct --rotation 12.5 --output-dir "render_check"
"""

import argparse
import logging
import sys
from pathlib import Path

from racing_line import analyze_telemetry
from racing_line import plotting


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Project a telemetry lap into track-map pixels and plot it"
    )
    parser.add_argument(
        "--data-file",
        type=str,
        default=None,
        help="Path to telemetry CSV (default: analyze_telemetry.DEFAULT_DATA_FILE)"
    )
    parser.add_argument(
        "--calibration-file",
        type=str,
        default=None,
        help="Path to calibration CSV (default: analyze_telemetry.CALIBRATION_FILE)"
    )
    parser.add_argument(
        "--mode",
        type=str,
        default="calibrated",
        choices=["calibrated", "direct"],
        help="Transform: 'calibrated' (solved from 3 reference points) or 'direct' (default scale/offset)"
    )
    parser.add_argument(
        "--rotation",
        type=float,
        default=None,
        help="Rotation in degrees for the direct transform"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="render_check",
        help="Output directory for results (default: render_check)"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    data_file = Path(args.data_file) if args.data_file else Path(analyze_telemetry.DEFAULT_DATA_FILE)
    calibration_file = (Path(args.calibration_file) if args.calibration_file
                        else Path(analyze_telemetry.CALIBRATION_FILE))

    print(f"Loading telemetry from: {data_file}")
    trajectory = analyze_telemetry.load_trajectory(data_file)
    print(f"Loaded {len(trajectory)} GPS points")
    if trajectory.is_empty:
        print("Error: no GPS points in telemetry file")
        return 1

    calibration = analyze_telemetry.load_calibration_points(calibration_file)

    if args.mode == "calibrated":
        result = analyze_telemetry.solve_calibration(calibration[:3])
        if not result.ok:
            print(f"Error: calibration undefined ({result.reason})")
            return 1
        transform = result.transform
    else:
        transform = analyze_telemetry.direct_transform_from_mapping({"rotation": args.rotation})
    print(f"Using {args.mode} transform: {transform.to_dict()}")

    projector = analyze_telemetry.Projector(trajectory, transform)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    plot_path = plotting.plot_projected_track(projector, output_dir / "racing_line.png",
                                              calibration=calibration)
    print(f"Saved overlay plot to: {plot_path}")

    csv_path = output_dir / "racing_line.csv"
    csv_path.write_text(analyze_telemetry.export_projected_csv(projector), encoding="utf-8")
    print(f"Saved projected points to: {csv_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
