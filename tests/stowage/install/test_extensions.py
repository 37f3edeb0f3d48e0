# tests/stowage/install/test_extensions.py
import re
import shlex
import sys

import pytest

from stowage.core.errors import ExtensionBuildError, UnsupportedExtensionError
from stowage.install.extensions import BUILDING_MESSAGE, BuilderKind, ExtensionBuilder, selectBuilder


@pytest.fixture
def installDir(tmp_path):
    path = tmp_path / "gems" / "a-2"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def builder(ui):
    return ExtensionBuilder(ui, sys.executable)


def _pythonCommand(code: str) -> str:
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


def test_no_extensions_is_a_noop(builder, ui, installDir):
    log = installDir / "stowage_make.out"
    builder.build([], installDir, log)

    assert ui.output == ""
    assert ui.error == ""
    assert not log.exists()


def test_missing_extconf_fails_with_log(builder, ui, installDir):
    log = installDir / "stowage_make.out"

    with pytest.raises(ExtensionBuildError) as excInfo:
        builder.build(["extconf.py"], installDir, log)

    message = str(excInfo.value)
    assert re.match(r"\AERROR: Failed to build gem native extension.$", message, re.MULTILINE)
    assert ui.output == BUILDING_MESSAGE + "\n"
    assert ui.error == ""

    logText = log.read_text()
    assert f"{sys.executable} extconf.py" in logText
    assert "No such file" in logText
    assert message.endswith(logText)
    assert excInfo.value.logPath == log


def test_unsupported_extension(builder, ui, installDir):
    log = installDir / "stowage_make.out"

    with pytest.raises(UnsupportedExtensionError) as excInfo:
        builder.build([None], installDir, log)

    assert re.search(r"^\s*No builder for extension ''$", str(excInfo.value), re.MULTILINE)
    assert isinstance(excInfo.value, ExtensionBuildError)
    assert ui.output == "Building native extensions.  This could take a while...\n"
    assert ui.error == ""
    assert log.read_text() == "No builder for extension ''\n"


def test_unsupported_named_extension(builder, installDir):
    log = installDir / "stowage_make.out"
    with pytest.raises(UnsupportedExtensionError):
        builder.build(["ext/Rakefile"], installDir, log)
    assert log.read_text() == "No builder for extension 'ext/Rakefile'\n"


def test_extconf_then_make_succeeds(builder, installDir, monkeypatch, writeFiles):
    writeFiles(installDir, {"ext/a/extconf.py": "print('checking for things... yes')\n"})
    monkeypatch.setenv("MAKE", _pythonCommand("print('compiled')"))
    log = installDir / "stowage_make.out"

    builder.build(["ext/a/extconf.py"], installDir, log)

    logText = log.read_text()
    assert "checking for things... yes" in logText
    assert "compiled" in logText


def test_extconf_runs_in_extension_directory(builder, installDir, monkeypatch, writeFiles):
    writeFiles(installDir, {"ext/a/extconf.py": "import os\nopen('marker', 'w').write(os.getcwd())\n"})
    monkeypatch.setenv("MAKE", _pythonCommand("pass"))

    builder.build(["ext/a/extconf.py"], installDir, installDir / "stowage_make.out")

    assert (installDir / "ext" / "a" / "marker").exists()


def test_failing_make_is_a_build_error(builder, installDir, monkeypatch, writeFiles):
    writeFiles(installDir, {"ext/extconf.py": "pass\n"})
    monkeypatch.setenv("MAKE", _pythonCommand("import sys; print('boom'); sys.exit(3)"))
    log = installDir / "stowage_make.out"

    with pytest.raises(ExtensionBuildError) as excInfo:
        builder.build(["ext/extconf.py"], installDir, log)

    assert "boom" in excInfo.value.buildLog


def test_missing_tool_is_a_build_error(builder, installDir, monkeypatch):
    monkeypatch.setenv("MAKE", "definitely-not-a-real-make-binary")
    with pytest.raises(ExtensionBuildError) as excInfo:
        builder.build(["Makefile"], installDir, installDir / "stowage_make.out")
    assert "definitely-not-a-real-make-binary" in excInfo.value.buildLog


def test_log_is_appended_across_attempts(builder, installDir):
    log = installDir / "stowage_make.out"
    for _ in range(2):
        with pytest.raises(UnsupportedExtensionError):
            builder.build([""], installDir, log)
    assert log.read_text() == "No builder for extension ''\n" * 2


def test_setup_py_builds_into_first_require_path(ui, installDir, writeFiles):
    script = (
        "import sys, pathlib\n"
        "dest = pathlib.Path(sys.argv[sys.argv.index('--build-lib') + 1])\n"
        "dest.mkdir(parents=True, exist_ok=True)\n"
        "(dest / 'built.txt').write_text(' '.join(sys.argv[1:]))\n"
    )
    writeFiles(installDir, {"ext/setup.py": script})
    builder = ExtensionBuilder(ui, sys.executable, requirePaths=["src", "lib"])

    builder.build(["ext/setup.py"], installDir, installDir / "stowage_make.out")

    built = installDir / "src" / "built.txt"
    assert built.read_text().startswith("build_ext --build-lib")


@pytest.mark.parametrize(
    "extension, expected",
    [
        ("ext/a/extconf.py", BuilderKind.EXT_CONF),
        ("ext/configure", BuilderKind.CONFIGURE),
        ("ext/setup.py", BuilderKind.SETUP_PY),
        ("ext/Makefile", BuilderKind.MAKEFILE),
        ("GNUmakefile", BuilderKind.MAKEFILE),
        ("ext/Rakefile", None),
        ("", None),
        (None, None),
    ],
)
def test_selectBuilder(extension, expected):
    assert selectBuilder(extension) is expected


def test_commands_honour_MAKE(builder, tmp_path, monkeypatch):
    monkeypatch.setenv("MAKE", "gmake -j2")
    commands = builder.commandsFor(BuilderKind.CONFIGURE, "ext/configure", tmp_path, tmp_path / "lib")
    assert commands == [
        ["sh", "./configure", f"--prefix={tmp_path}"],
        ["gmake", "-j2"],
        ["gmake", "-j2", "install"],
    ]
