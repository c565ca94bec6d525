import io
import os

import pytest

from minishell.builtins import (
    ShellExit,
    cd,
    echo,
    env_command,
    exit_command,
    export,
    is_builtin,
    parse_exit_code,
    pwd,
    run_builtin,
    unset,
)
from minishell.environment import Environment, build_environment


def _echo(*words):
    out = io.StringIO()
    status = echo(["echo", *words], out)
    return status, out.getvalue()


@pytest.mark.parametrize("name", ["cd", "echo", "pwd", "export", "unset", "env", "exit"])
def test_is_builtin_true(name):
    assert is_builtin(name) is True


@pytest.mark.parametrize("name", ["ls", "cdx", "ech", "", "EXIT"])
def test_is_builtin_false(name):
    assert is_builtin(name) is False


def test_echo_without_arguments_prints_newline():
    assert _echo() == (0, "\n")


def test_echo_joins_words():
    assert _echo("hello", "world") == (0, "hello world\n")


def test_echo_n_suppresses_newline():
    assert _echo("-n", "hello") == (0, "hello")


def test_echo_repeated_n_flags():
    assert _echo("-nnn", "-n", "a", "b") == (0, "a b")


def test_echo_only_flags_prints_nothing():
    assert _echo("-n") == (0, "")


def test_echo_other_option_is_printed():
    assert _echo("-x", "a") == (0, "-x a\n")


def test_echo_lone_dash_is_a_word():
    assert _echo("-", "a") == (0, "- a\n")


def test_echo_flag_after_word_is_a_word():
    assert _echo("a", "-n") == (0, "a -n\n")


def test_pwd_prints_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out, err = io.StringIO(), io.StringIO()
    assert pwd(out, err) == 0
    assert out.getvalue() == os.getcwd() + "\n"
    assert err.getvalue() == ""


def test_cd_to_directory_updates_pwd(tmp_path, monkeypatch):
    start = tmp_path / "start"
    target = tmp_path / "target"
    start.mkdir()
    target.mkdir()
    monkeypatch.chdir(start)
    before = os.getcwd()
    env = Environment()
    assert cd(["cd", str(target)], env, io.StringIO()) == 0
    assert os.path.samefile(os.getcwd(), target)
    assert env.get("OLDPWD") == before
    assert env.get("PWD") == os.getcwd()


def test_cd_without_argument_goes_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.chdir(tmp_path)
    env = build_environment([f"HOME={home}"])
    assert cd(["cd"], env, io.StringIO()) == 0
    assert os.path.samefile(os.getcwd(), home)


def test_cd_without_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    err = io.StringIO()
    assert cd(["cd"], Environment(), err) == 1
    assert err.getvalue() == "minishell: cd: Home is not set\n"
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_cd_missing_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    missing = str(tmp_path / "missing")
    env = Environment()
    err = io.StringIO()
    assert cd(["cd", missing], env, err) == 1
    assert err.getvalue().startswith(f"minishell: cd: {missing}: ")
    assert "OLDPWD" not in env


def test_export_sets_value():
    env = Environment()
    assert export(["export", "A=1", "B=x=y"], env, io.StringIO(), io.StringIO()) == 0
    assert env.get("A") == "1"
    assert env.get("B") == "x=y"


def test_export_declares_without_value_and_keeps_existing():
    env = build_environment(["A=1"])
    export(["export", "A", "NEW"], env, io.StringIO(), io.StringIO())
    assert env.get("A") == "1"
    assert "NEW" in env
    assert env.get("NEW") is None


def test_export_invalid_identifier():
    env = Environment()
    err = io.StringIO()
    assert export(["export", "1A=b", "OK=1"], env, io.StringIO(), err) == 1
    assert err.getvalue() == "minishell: export: 1A=b: not a valid identifier\n"
    assert "1A" not in env
    assert env.get("OK") == "1"


def test_export_without_arguments_lists_sorted():
    env = build_environment(["B=2", "A=1", "C"])
    out = io.StringIO()
    assert export(["export"], env, out, io.StringIO()) == 0
    assert out.getvalue().splitlines() == env.export_lines()
    assert out.getvalue().splitlines()[0].startswith("declare -x A")


def test_unset_removes_and_reports_invalid():
    env = build_environment(["A=1", "B=2"])
    err = io.StringIO()
    assert unset(["unset", "A", "9x"], env, err) == 1
    assert "A" not in env
    assert env.get("B") == "2"
    assert err.getvalue() == "minishell: unset: 9x not a valid identifier\n"


def test_env_command_skips_valueless():
    env = build_environment(["A=1", "B"])
    out = io.StringIO()
    assert env_command(env, out) == 0
    assert out.getvalue() == "A=1\n"


@pytest.mark.parametrize(
    "text, expected",
    [("0", 0), ("42", 42), ("255", 255), ("+7", 7), ("256", 0), ("-1", 255)],
)
def test_parse_exit_code(text, expected):
    assert parse_exit_code(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "12a", "-", "9223372036854775808"])
def test_parse_exit_code_rejects(text):
    with pytest.raises(ValueError):
        parse_exit_code(text)


def test_parse_exit_code_accepts_long_min():
    assert parse_exit_code("-9223372036854775808") == 0


def test_exit_without_argument_uses_last_status():
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_command(["exit"], 3, out, io.StringIO())
    assert info.value.status == 3
    assert out.getvalue() == "exit\n"


def test_exit_with_number():
    with pytest.raises(ShellExit) as info:
        exit_command(["exit", "42"], 0, io.StringIO(), io.StringIO())
    assert info.value.status == 42


def test_exit_non_numeric():
    err = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_command(["exit", "abc", "x"], 0, io.StringIO(), err)
    assert info.value.status == 255
    assert err.getvalue() == "minishell: exit: abc: numeric argument required\n"


def test_exit_too_many_arguments_does_not_exit():
    err = io.StringIO()
    assert exit_command(["exit", "1", "2"], 0, io.StringIO(), err) == 1
    assert err.getvalue() == "minishell: exit: too many arguments\n"


def test_exit_overflow_is_numeric_error():
    with pytest.raises(ShellExit) as info:
        exit_command(["exit", "99999999999999999999"], 0, io.StringIO(), io.StringIO())
    assert info.value.status == 255


def test_run_builtin_dispatches_echo_and_export():
    env = Environment()
    out = io.StringIO()
    assert run_builtin(["echo", "hi"], env, 0, out, io.StringIO()) == 0
    assert out.getvalue() == "hi\n"
    assert run_builtin(["export", "X=1"], env, 0, out, io.StringIO()) == 0
    assert env.get("X") == "1"


def test_run_builtin_exit_raises():
    with pytest.raises(ShellExit) as info:
        run_builtin(["exit"], Environment(), 5, io.StringIO(), io.StringIO())
    assert info.value.status == 5


def test_run_builtin_rejects_unknown():
    with pytest.raises(ValueError):
        run_builtin(["ls"], Environment(), 0, io.StringIO(), io.StringIO())