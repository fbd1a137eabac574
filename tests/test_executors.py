"""Tests for the local subprocess executor."""

import sys
import time

import pytest

from ami_pipeline.build.utils import CommandError, mask_secrets, mask_user
from ami_pipeline.executors import LocalExecutor, local


def _py(code):
    return [sys.executable, "-c", code]


class TestLocalExecutor:
    def test_merges_stderr_into_output(self):
        output, returncode = LocalExecutor().run(
            _py("import sys; print('out'); sys.stdout.flush(); print('err', file=sys.stderr)")
        )
        assert returncode == 0
        assert "out" in output
        assert "err" in output

    def test_returns_nonzero_code(self):
        output, returncode = LocalExecutor().run(_py("import sys; print('boom'); sys.exit(3)"))
        assert returncode == 3
        assert "boom" in output

    def test_run_check_raises_with_tail(self):
        with pytest.raises(CommandError, match="exit 4") as exc:
            LocalExecutor().run_check(_py("import sys; print('last words'); sys.exit(4)"))
        assert "last words" in str(exc.value)

    def test_masks_secrets_in_command_and_output(self, capsys):
        output, _ = LocalExecutor().run(_py("print('token=s3cr3t')"), mask=["s3cr3t"])
        assert output.strip() == "token=****"
        assert "s3cr3t" not in capsys.readouterr().out

    def test_missing_binary_raises(self):
        with pytest.raises(CommandError, match="not found"):
            LocalExecutor().run(["definitely-not-a-real-binary-xyz"])

    def test_timeout_raises(self):
        with pytest.raises(CommandError, match="timed out"):
            LocalExecutor().run(_py("import time; time.sleep(5)"), timeout=0.5)

    def test_timeout_keeps_output_tail(self, capsys):
        code = "import time; print('==> step 3 of 5', flush=True); time.sleep(5)"
        with pytest.raises(CommandError, match="timed out") as exc:
            LocalExecutor().run(_py(code), timeout=1)
        assert "==> step 3 of 5" in str(exc.value)
        assert "==> step 3 of 5\n" in capsys.readouterr().out

    def test_output_echoed_as_it_arrives(self, monkeypatch):
        echoed = []
        monkeypatch.setattr(local, "print", lambda text, **kw: echoed.append((time.monotonic(), text)), raising=False)

        code = "import time; print('first', flush=True); time.sleep(1); print('second', flush=True)"
        output, returncode = LocalExecutor().run(_py(code))

        assert returncode == 0
        assert output == "first\nsecond\n"
        stamps = {text: at for at, text in echoed}
        assert stamps["second\n"] - stamps["first\n"] > 0.5

    def test_no_echo(self, capsys):
        output, _ = LocalExecutor(echo_output=False).run(_py("print('qu' + 'iet')"))
        assert output.strip() == "quiet"
        assert "quiet" not in capsys.readouterr().out


def test_mask_secrets_ignores_empty_values():
    assert mask_secrets("a b", ["", None]) == "a b"


def test_mask_user():
    assert mask_user("deploybot") == "dep...ot"
    assert mask_user("bob") == "b..."
