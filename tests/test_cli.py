from cli import main


def test_convert_writes_both_files(ball_project, output_dir, capsys):
    assert main(["convert", str(ball_project), "--output-dir", str(output_dir)]) == 0

    assert (output_dir / "ball_build.bytes").exists()
    assert (output_dir / "ball_anim.bytes").exists()
    assert "Done." in capsys.readouterr().out


def test_convert_missing_input(tmp_path, capsys):
    assert main(["convert", str(tmp_path / "nope.scml")]) == 1
    assert "Input file not found" in capsys.readouterr().err


def test_convert_rejects_other_extensions(tmp_path, capsys):
    path = tmp_path / "hero.xml"
    path.write_text("<spriter_data/>")
    assert main(["convert", str(path)]) == 1
    assert "Unsupported file format" in capsys.readouterr().err


def test_conversion_errors_are_reported_without_traceback(tmp_path, capsys):
    path = tmp_path / "hero.scml"
    path.write_text("<spriter_data><folder/></spriter_data>")

    assert main(["convert", str(path), "--output-dir", str(tmp_path / "out")]) == 1
    assert "Error: SCML format exception" in capsys.readouterr().err


def test_dump_prints_both_files(ball_project, output_dir, capsys):
    main(["convert", str(ball_project), "--output-dir", str(output_dir)])
    capsys.readouterr()

    assert main(["dump", str(output_dir / "ball_build.bytes")]) == 0
    build_out = capsys.readouterr().out
    assert "BILD v10 'ball': 1 symbols, 1 frames" in build_out
    assert "-3415041 = ball" in build_out

    assert main(["dump", str(output_dir / "ball_anim.bytes")]) == 0
    anim_out = capsys.readouterr().out
    assert "bank 'idle'" in anim_out
    assert "@ 10 fps" in anim_out


def test_dump_of_missing_file(tmp_path, capsys):
    assert main(["dump", str(tmp_path / "missing.bytes")]) == 1
    assert "Error:" in capsys.readouterr().err
