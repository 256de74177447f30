import pytest

from tradewire.config_tool import DEFAULT_PREFIX, VERSION, build_output, main


def test_build_output_all_flags():
    assert build_output(False, True, True, True, "/opt/pfx") == (
        "-I/opt/pfx/include -L/opt/pfx/lib -ltrading -lz "
    )


def test_build_output_libs_only():
    assert build_output(False, False, False, True, "/x") == "-ltrading -lz "


def test_build_output_version_wins():
    assert build_output(True, True, True, True, "/x") == VERSION


def test_build_output_nothing_selected():
    assert build_output(False, False, False, False, "/x") == ""


def test_no_arguments_prints_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "Usage:" in err
    assert "--cflags" in err


def test_unknown_option_prints_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--bogus"])
    assert excinfo.value.code == 1
    assert "Usage:" in capsys.readouterr().err


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out == VERSION + "\n"


def test_short_and_long_options_agree(capsys):
    main(["--libs", "--cflags"])
    long_out = capsys.readouterr().out
    main(["-l", "-c"])
    short_out = capsys.readouterr().out
    assert long_out == short_out
    assert long_out == f"-I{DEFAULT_PREFIX}/include -ltrading -lz \n"


def test_output_order_fixed(capsys):
    main(["--libs", "--ldflags", "--cflags"])
    out = capsys.readouterr().out
    assert out.index("-I") < out.index("-L") < out.index("-ltrading")


def test_abbreviated_long_option(capsys):
    assert main(["--vers"]) == 0
    assert capsys.readouterr().out.strip() == VERSION


def test_ambiguous_abbreviation_is_rejected():
    with pytest.raises(SystemExit) as excinfo:
        main(["--l"])
    assert excinfo.value.code == 1