from __future__ import annotations

from scripts.validate_environment import main


def test_validate_environment_passes_with_builtin_network(capsys) -> None:
    exit_code = main()

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "[PASS] Network catalog: 3 lines, 3 depots" in output
    assert "[PASS] Planning run" in output
