from xvkit.rm import main


def test_usage_without_arguments(capsys):
    assert main([]) == 1
    assert capsys.readouterr().err == "Usage: rm files...\n"


def test_removes_files(tmp_path):
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_text("x")
    b.write_text("y")
    assert main([str(a), str(b)]) == 0
    assert not a.exists()
    assert not b.exists()


def test_stops_at_first_failure(tmp_path, capsys):
    missing = tmp_path / "missing"
    after = tmp_path / "after"
    after.write_text("keep")
    assert main([str(missing), str(after)]) == 1
    assert capsys.readouterr().err == f"rm: {missing} failed to delete\n"
    assert after.exists()


def test_removes_empty_directory(tmp_path):
    d = tmp_path / "empty"
    d.mkdir()
    assert main([str(d)]) == 0
    assert not d.exists()


def test_refuses_non_empty_directory(tmp_path, capsys):
    d = tmp_path / "full"
    d.mkdir()
    (d / "inner").write_text("z")
    assert main([str(d)]) == 1
    assert "failed to delete" in capsys.readouterr().err
    assert (d / "inner").exists()