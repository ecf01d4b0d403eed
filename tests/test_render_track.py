import render_track


LAP = "".join(
    f"2025-09-06T18:40:{10 + i:02d}.000Z,VBOX_Lat_Min,{33.5318 + i * 0.0001:.7f}\n"
    f"2025-09-06T18:40:{10 + i:02d}.000Z,VBOX_Long_Minutes,{-86.6208 + i * 0.0001:.7f}\n"
    for i in range(12)
)


def test_cli_writes_plot_and_csv(tmp_path):
    data_file = tmp_path / "lap.csv"
    data_file.write_text("timestamp,telemetry_name,telemetry_value\n" + LAP, encoding="utf-8")
    output_dir = tmp_path / "out"

    code = render_track.main([
        "--data-file", str(data_file),
        "--calibration-file", str(tmp_path / "missing.csv"),
        "--output-dir", str(output_dir),
    ])

    assert code == 0
    assert (output_dir / "racing_line.png").stat().st_size > 0
    assert len((output_dir / "racing_line.csv").read_text().strip().splitlines()) == 13


def test_cli_direct_mode_with_rotation(tmp_path):
    data_file = tmp_path / "lap.csv"
    data_file.write_text("timestamp,telemetry_name,telemetry_value\n" + LAP, encoding="utf-8")

    code = render_track.main([
        "--data-file", str(data_file),
        "--mode", "direct",
        "--rotation", "15",
        "--output-dir", str(tmp_path / "out"),
    ])

    assert code == 0


def test_cli_fails_on_empty_trajectory(tmp_path, capsys):
    data_file = tmp_path / "lap.csv"
    data_file.write_text("timestamp,telemetry_name,telemetry_value\nt1,speed,3\n", encoding="utf-8")

    code = render_track.main(["--data-file", str(data_file), "--output-dir", str(tmp_path / "out")])

    assert code == 1
    assert "no GPS points" in capsys.readouterr().out
