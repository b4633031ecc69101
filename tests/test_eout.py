import pytest

from metadb import eout


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.setattr(eout, "enable_verbose", False)
    monkeypatch.setattr(eout, "enable_trace", False)
    eout.never_color()
    eout.init("metadb")
    yield
    eout.never_color()


def test_error(capsys):
    eout.error("bad %s", "thing")
    assert capsys.readouterr().err == "metadb: error: bad thing\n"


def test_warning(capsys):
    eout.warning("careful")
    assert capsys.readouterr().err == "metadb: warning: careful\n"


def test_info(capsys):
    eout.info("%d tables", 3)
    assert capsys.readouterr().err == "metadb: 3 tables\n"


def test_message_without_args_keeps_percent(capsys):
    eout.info("100%")
    assert capsys.readouterr().err == "metadb: 100%\n"


def test_verbose_disabled(capsys):
    eout.verbose("hidden")
    assert capsys.readouterr().err == ""


def test_verbose_enabled_by_trace(capsys, monkeypatch):
    monkeypatch.setattr(eout, "enable_trace", True)
    eout.verbose("shown")
    assert capsys.readouterr().err == "metadb: shown\n"


def test_verbose_enabled(capsys, monkeypatch):
    monkeypatch.setattr(eout, "enable_verbose", True)
    eout.verbose("on")
    assert capsys.readouterr().err == "metadb: on\n"


def test_always_color(capsys):
    eout.always_color()
    eout.error("x")
    err = capsys.readouterr().err
    assert err == "\x1b[37;1mmetadb: \x1b[0m\x1b[31;1merror: \x1b[0mx\n"


def test_auto_color_dumb_terminal(capsys, monkeypatch):
    monkeypatch.setenv("TERM", "dumb")
    eout.always_color()
    eout.auto_color()
    eout.warning("w")
    assert capsys.readouterr().err == "metadb: warning: w\n"