"""Tests for the render_spheres command-line script.

The script calls ``ti.init`` itself; it is patched out here so the session's
Taichi runtime is reused.
"""

import pytest


@pytest.fixture
def no_reinit(monkeypatch):
    """Keep the session Taichi runtime when the script initializes Taichi."""
    from examples import render_spheres

    calls = []
    monkeypatch.setattr(render_spheres.ti, "init", lambda **kwargs: calls.append(kwargs))
    return calls


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test the default arguments."""
        from examples.render_spheres import parse_args

        args = parse_args([])
        assert (args.width, args.height) == (640, 480)
        assert args.bounces == 5
        assert args.output == "test.png"
        assert args.arch == "cpu"
        assert args.threads is None
        assert not args.quiet

    def test_rejects_unknown_arch(self):
        """Test only cpu and gpu backends are accepted."""
        from examples.render_spheres import parse_args

        with pytest.raises(SystemExit):
            parse_args(["--arch", "tpu"])


class TestMain:
    """Tests for the main entry point."""

    def test_renders_png(self, no_reinit, tmp_path):
        """Test a small render writes the output file and exits 0."""
        from PIL import Image

        from examples.render_spheres import main

        path = tmp_path / "spheres.png"
        status = main(
            ["--width", "32", "--height", "24", "--bounces", "1", "--output", str(path), "--quiet"]
        )

        assert status == 0
        with Image.open(path) as img:
            assert img.mode == "RGBA"
            assert img.size == (32, 24)

    def test_threads_are_passed_to_taichi(self, no_reinit, tmp_path):
        """Test --threads sets Taichi's CPU thread count."""
        from examples.render_spheres import main

        path = tmp_path / "spheres.png"
        main(["--width", "8", "--height", "8", "--threads", "2", "--output", str(path), "--quiet"])

        assert no_reinit[-1]["cpu_max_num_threads"] == 2

    def test_invalid_size_exits_1(self, no_reinit, tmp_path, capsys):
        """Test errors are reported on stderr with exit status 1."""
        from examples.render_spheres import main

        status = main(["--width", "0", "--output", str(tmp_path / "x.png"), "--quiet"])

        assert status == 1
        assert "Error:" in capsys.readouterr().err

    def test_unwritable_output_exits_1(self, no_reinit, tmp_path):
        """Test a failed write is reported as exit status 1."""
        from examples.render_spheres import main

        path = tmp_path / "missing_dir" / "x.png"
        status = main(["--width", "8", "--height", "8", "--output", str(path), "--quiet"])
        assert status == 1
