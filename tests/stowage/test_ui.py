# tests/stowage/test_ui.py
import io

from stowage.ui import StreamUI


def test_say_goes_to_out_and_warnings_to_err():
    out, err = io.StringIO(), io.StringIO()
    ui = StreamUI(out, err)

    ui.say("Building native extensions.  This could take a while...")
    ui.alertWarning("Unable to use symlinks on this platform, installing wrapper")
    ui.say()

    assert out.getvalue() == "Building native extensions.  This could take a while...\n\n"
    assert err.getvalue() == "WARNING:  Unable to use symlinks on this platform, installing wrapper\n"


def test_defaults_to_process_streams(capsys):
    StreamUI().say("hello")
    StreamUI().alertWarning("watch out")

    captured = capsys.readouterr()
    assert captured.out == "hello\n"
    assert captured.err == "WARNING:  watch out\n"
