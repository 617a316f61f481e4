"""
Tests for shim script generation.
"""

import os
import stat

import pytest

from sdkenv.shim.scripts import ShimScriptError, ShimScriptGenerator


@pytest.fixture
def generator(sdk_root):
    return ShimScriptGenerator(
        sdk_root.shims_dir, root=sdk_root.root, python="/usr/bin/python3", windows=False
    )


class TestRender:
    """Test ShimScriptGenerator.render."""

    def test_sh_launcher(self, generator, sdk_root):
        """Test the POSIX launcher runs the front-end for its tool."""
        content = generator.render("shim.sh.j2", "flutter")

        assert content.startswith("#!/bin/sh\n")
        assert 'exec "/usr/bin/python3" -m sdkenv.shim.frontend flutter "$@"' in content
        assert f'SDKENV_ROOT="{sdk_root.root}"' in content
        assert content.endswith("\n")

    def test_sh_without_root(self, sdk_root):
        """Test no default root is baked in when none is given."""
        generator = ShimScriptGenerator(sdk_root.shims_dir, python="python3", windows=False)

        content = generator.render("shim.sh.j2", "dart")

        assert "SDKENV_ROOT" not in content
        assert "sdkenv.shim.frontend dart" in content

    def test_cmd_launcher(self, generator):
        """Test the Windows launcher forwards arguments and exit code."""
        content = generator.render("shim.cmd.j2", "dart")

        assert content.startswith("@echo off")
        assert '"/usr/bin/python3" -m sdkenv.shim.frontend dart %*' in content
        assert "exit /b %ERRORLEVEL%" in content

    def test_missing_template(self, generator):
        """Test an unknown template raises ShimScriptError."""
        with pytest.raises(ShimScriptError):
            generator.render("missing.j2", "flutter")

    def test_missing_template_dir(self, sdk_root, temp_dir):
        """Test a missing template directory is reported up front."""
        with pytest.raises(ShimScriptError, match="Template directory not found"):
            ShimScriptGenerator(sdk_root.shims_dir, template_dir=temp_dir / "none")


class TestGenerate:
    """Test ShimScriptGenerator.generate and generate_all."""

    def test_generate(self, generator, sdk_root):
        """Test one executable launcher per tool."""
        paths = generator.generate("flutter")

        assert paths == [sdk_root.shims_dir / "flutter"]
        if os.name != "nt":
            assert paths[0].stat().st_mode & stat.S_IXUSR

    def test_generate_windows(self, sdk_root):
        """Test .cmd launchers use CRLF line endings."""
        generator = ShimScriptGenerator(sdk_root.shims_dir, python="python.exe", windows=True)

        paths = generator.generate("dart")

        assert [p.name for p in paths] == ["dart", "dart.cmd"]
        assert b"\r\n" in (sdk_root.shims_dir / "dart.cmd").read_bytes()

    def test_generate_all(self, generator, sdk_root):
        """Test every configured tool gets a launcher."""
        paths = generator.generate_all(["flutter", "dart"])

        assert sorted(p.name for p in paths) == ["dart", "flutter"]

    def test_regenerate_replaces(self, generator, sdk_root):
        """Test rehash overwrites existing launchers."""
        (sdk_root.shims_dir / "flutter").write_text("old")

        generator.generate_all(["flutter"])

        assert "sdkenv.shim.frontend" in (sdk_root.shims_dir / "flutter").read_text()

    def test_removes_stale_generated(self, generator, sdk_root):
        """Test launchers for tools no longer managed are removed."""
        generator.generate_all(["flutter", "dart"])

        generator.generate_all(["flutter"])

        assert not (sdk_root.shims_dir / "dart").exists()
        assert (sdk_root.shims_dir / "flutter").exists()

    def test_keeps_foreign_files(self, generator, sdk_root):
        """Test files not written by rehash are left alone."""
        foreign = sdk_root.shims_dir / "pub"
        foreign.write_text("#!/bin/sh\necho mine\n")

        generator.generate_all(["flutter"])

        assert foreign.exists()
