from unittest.mock import AsyncMock, patch

import main
from diffscan.core.errors import RemoteScanError


def test_exit_code_zero_on_success():
    with patch("main.run_from_env", new=AsyncMock(return_value=None)), patch("main.setup_logging"):
        assert main.main([]) == 0


def test_exit_code_one_on_failure(capsys):
    failing = AsyncMock(side_effect=RemoteScanError("Nightfall API returned HTTP 401"))
    with patch("main.run_from_env", new=failing), patch("main.setup_logging"):
        assert main.main(["--debug"]) == 1
    assert "HTTP 401" in capsys.readouterr().err
