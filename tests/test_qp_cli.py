import contextlib
import io
import os
import pathlib
import sys
import unittest
from unittest import mock

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
import qp_cli


def run_cli(*argv):  # Run qp_cli.main and capture (exit code, stdout, stderr).
    out, err = io.StringIO(), io.StringIO()
    with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
        code = qp_cli.main(list(argv))
    return code, out.getvalue().strip(), err.getvalue().strip()


class CliTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.dict(os.environ, {}, clear=False)
        patcher.start()
        self.addCleanup(patcher.stop)
        os.environ.pop(qp_cli.PRIME_ENV, None)

    def test_show(self):
        self.assertEqual(run_cli("show", "9"), (0, "1(2) int=9", ""))
        self.assertEqual(run_cli("show", "18", "-1"), (0, "2(1) int=6", ""))
        self.assertEqual(run_cli("show", "1", "-1"), (0, "1(-1)", ""))

    def test_add_and_mul(self):
        self.assertEqual(run_cli("add", "9", "4"), (0, "13(0)", ""))
        self.assertEqual(run_cli("--prime", "5", "add", "3", "2"), (0, "1(1)", ""))
        self.assertEqual(run_cli("mul", "3", "-3"), (0, "-1(2)", ""))

    def test_encode_decode(self):
        self.assertEqual(run_cli("encode", "-300", "-2"), (0, "feff0300022c01", ""))
        self.assertEqual(run_cli("decode", "feff0300022c01"), (0, "-300(-2)", ""))

    def test_prime_from_environment(self):
        os.environ[qp_cli.PRIME_ENV] = "7"
        self.assertEqual(run_cli("show", "49"), (0, "1(2) int=49", ""))
        self.assertEqual(run_cli("--prime", "3", "show", "49"), (0, "49(0) int=49", ""))

    def test_errors_exit_nonzero(self):
        code, out, err = run_cli("decode", "feff")
        self.assertEqual((code, out), (1, ""))
        self.assertIn("unexpected EOF", err)
        code, _, err = run_cli("decode", "zz")
        self.assertEqual(code, 1)
        self.assertIn("invalid hex", err)
        code, _, err = run_cli("--prime", "1", "show", "4")
        self.assertEqual(code, 1)
        self.assertIn("prime", err)


if __name__ == "__main__":
    unittest.main()
