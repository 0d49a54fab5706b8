import pytest

from skyctl.completion import completion_script


def test_bash_script_asks_command_for_completions():
    script = completion_script("bash")
    assert "--auto_complete" in script
    assert "complete -o bashdefault -o default -o nospace -F _cli_bash_autocomplete $PROG" in script


def test_powershell_script_registers_completer():
    script = completion_script("powershell")
    assert "Register-ArgumentCompleter -Native -CommandName swctl" in script
    assert "--auto_complete" in script


@pytest.mark.parametrize("alias, full", [("b", "bash"), ("p", "powershell")])
def test_aliases_give_same_script(alias, full):
    assert completion_script(alias) == completion_script(full)


def test_scripts_differ_between_shells():
    assert completion_script("bash") != completion_script("powershell")


def test_unknown_shell_raises():
    with pytest.raises(ValueError):
        completion_script("fish")