import io
import os
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from hypothesis import given, strategies as st

from sysprobes import ischroot
from sysprobes.identity import Detection, IdentityProbe

FAKECHROOT_ENV = {
    "FAKECHROOT": "true",
    "FAKECHROOT_BASE": "/srv/fake",
    "LD_PRELOAD": "/usr/lib/x86_64-linux-gnu/fakechroot/libfakechroot.so",
}


class StubProbe(IdentityProbe):
    name = "stub"

    def __init__(self, status: str) -> None:
        self.status = status
        self.calls = 0

    def probe(self) -> Detection:
        self.calls += 1
        return Detection(self.status, "stubbed")


class TestFakechroot(unittest.TestCase):
    def test_requires_all_three_variables(self) -> None:
        self.assertTrue(ischroot.is_fakechroot(FAKECHROOT_ENV))
        for key in FAKECHROOT_ENV:
            environ = dict(FAKECHROOT_ENV)
            environ.pop(key)
            self.assertFalse(ischroot.is_fakechroot(environ), key)

    def test_flag_must_be_literal_true(self) -> None:
        self.assertFalse(ischroot.is_fakechroot(dict(FAKECHROOT_ENV, FAKECHROOT="TRUE")))
        self.assertFalse(ischroot.is_fakechroot(dict(FAKECHROOT_ENV, FAKECHROOT="1")))

    def test_empty_base_still_counts(self) -> None:
        self.assertTrue(ischroot.is_fakechroot(dict(FAKECHROOT_ENV, FAKECHROOT_BASE="")))

    @given(
        base=st.text(),
        before=st.text(),
        after=st.text(),
        actual=st.sampled_from(["inside", "outside", "undeterminable"]),
    )
    def test_fakechroot_always_reports_outside(self, base, before, after, actual) -> None:
        environ = {
            "FAKECHROOT": "true",
            "FAKECHROOT_BASE": base,
            "LD_PRELOAD": f"{before}libfakechroot.so{after}",
        }
        probe = StubProbe(actual)
        detection = ischroot.detect(environ, probe)
        self.assertEqual(detection.status, "outside")
        self.assertEqual(probe.calls, 0)

    def test_detect_falls_through_to_probe(self) -> None:
        probe = StubProbe("inside")
        self.assertEqual(ischroot.detect({}, probe).status, "inside")
        self.assertEqual(probe.calls, 1)


class TestExitStatus(unittest.TestCase):
    def test_conclusive_results_ignore_default(self) -> None:
        for default in (None, False, True):
            self.assertEqual(ischroot.exit_status(Detection("outside", ""), default), 0)
            self.assertEqual(ischroot.exit_status(Detection("inside", ""), default), 1)

    def test_undeterminable_uses_default(self) -> None:
        unknown = Detection("undeterminable", "")
        self.assertEqual(ischroot.exit_status(unknown), 2)
        self.assertEqual(ischroot.exit_status(unknown, False), 0)
        self.assertEqual(ischroot.exit_status(unknown, True), 1)


class TestMain(unittest.TestCase):
    def run_main(self, argv, status="undeterminable", environ=None):
        probe = StubProbe(status)
        stdout, stderr = io.StringIO(), io.StringIO()
        with mock.patch.dict(os.environ, environ or {}, clear=True), mock.patch.object(
            ischroot, "select_probe", return_value=probe
        ), redirect_stdout(stdout), redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
            ischroot.main(argv)
        return ctx.exception.code, stdout.getvalue(), stderr.getvalue(), probe

    def test_chroot_detected(self) -> None:
        code, stdout, stderr, _ = self.run_main([], status="inside")
        self.assertEqual(code, 1)
        self.assertEqual(stdout, "")
        self.assertEqual(stderr, "")

    def test_real_root_detected(self) -> None:
        code, _, _, _ = self.run_main([], status="outside")
        self.assertEqual(code, 0)

    def test_default_flags(self) -> None:
        self.assertEqual(self.run_main([])[0], 2)
        self.assertEqual(self.run_main(["-f"])[0], 0)
        self.assertEqual(self.run_main(["--default-false"])[0], 0)
        self.assertEqual(self.run_main(["-t"])[0], 1)
        self.assertEqual(self.run_main(["--default-true"])[0], 1)

    def test_fakechroot_overrides_probe(self) -> None:
        code, _, _, probe = self.run_main([], status="inside", environ=FAKECHROOT_ENV)
        self.assertEqual(code, 0)
        self.assertEqual(probe.calls, 0)

    @given(
        environ=st.dictionaries(
            st.sampled_from(["FAKECHROOT", "FAKECHROOT_BASE", "LD_PRELOAD", "SYSPROBES_DEBUG"]),
            st.sampled_from(["", "true", "1", "/srv/fake", "libfakechroot.so"]),
        ),
        argv=st.permutations(["-f", "-t"]),
    )
    def test_both_defaults_is_usage_error(self, environ, argv) -> None:
        code, stdout, stderr, probe = self.run_main(list(argv), status="inside", environ=environ)
        self.assertEqual(code, 1)
        self.assertEqual(stdout, "")
        self.assertIn("Can't default to both true and false!", stderr)
        self.assertIn("Try `ischroot --help' for more information.", stderr)
        self.assertEqual(probe.calls, 0)

    def test_combined_short_flags_conflict(self) -> None:
        code, _, stderr, _ = self.run_main(["-ft"])
        self.assertEqual(code, 1)
        self.assertIn("Can't default to both", stderr)

    def test_unknown_option(self) -> None:
        code, _, stderr, probe = self.run_main(["--bogus"])
        self.assertEqual(code, 1)
        self.assertIn("Try `ischroot --help'", stderr)
        self.assertEqual(probe.calls, 0)

    def test_help_and_version(self) -> None:
        code, stdout, _, _ = self.run_main(["-h"])
        self.assertEqual(code, 0)
        self.assertIn("--default-false", stdout)

        code, stdout, _, _ = self.run_main(["-V"])
        self.assertEqual(code, 0)
        self.assertTrue(stdout.startswith("ischroot "))


if __name__ == "__main__":
    unittest.main()
