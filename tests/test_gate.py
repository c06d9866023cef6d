"""Unit tests for the output gate."""

import io
import sys

import pytest

from mongo_mcp.gate import OutputGate


class TestPassthrough:
    """Tests for write forwarding."""

    def test_starts_disabled(self):
        """A new gate drops everything until enabled."""
        output = io.StringIO()
        gate = OutputGate(output)

        assert gate.passthrough is False
        assert gate.write("hello") == 5
        assert output.getvalue() == ""

    def test_enabled_gate_forwards_writes(self):
        output = io.StringIO()
        gate = OutputGate(output)
        gate.enable()

        gate.write("hello")

        assert output.getvalue() == "hello"

    def test_disable_closes_the_channel(self):
        output = io.StringIO()
        gate = OutputGate(output)
        gate.enable()
        gate.disable()

        assert gate.write("late") == 4
        assert gate.emit('{"id": 1}') is False
        assert output.getvalue() == ""

    def test_emit_frames_one_line(self, gate, output):
        assert gate.emit('{"jsonrpc": "2.0"}') is True
        assert output.getvalue() == '{"jsonrpc": "2.0"}\n'


class TestSuppressed:
    """Tests for the scoped suppression window."""

    def test_writes_inside_window_are_discarded(self, gate, output):
        with gate.suppressed():
            assert gate.passthrough is False
            assert gate.write("noise") == 5
            assert gate.emit("message") is False

        gate.write("after")
        assert output.getvalue() == "after"

    def test_restores_after_exception(self, gate):
        before = gate.passthrough

        with pytest.raises(RuntimeError):
            with gate.suppressed():
                raise RuntimeError("boom")

        assert gate.passthrough == before

    def test_restores_disabled_state(self):
        """A window opened on a closed gate leaves it closed."""
        gate = OutputGate(io.StringIO())

        with gate.suppressed():
            pass

        assert gate.passthrough is False

    def test_early_return_restores(self, gate):
        def action():
            with gate.suppressed():
                return "done"

        assert action() == "done"
        assert gate.passthrough is True

    def test_nested_windows_compose(self, gate):
        with gate.suppressed():
            with gate.suppressed():
                pass
            # Inner exit must not reopen the channel
            assert gate.passthrough is False

        assert gate.passthrough is True

    def test_interleaved_windows_compose(self, gate):
        """Windows that close out of order keep the gate shut until the last one ends."""
        first = gate.suppressed()
        second = gate.suppressed()
        first.__enter__()
        second.__enter__()

        first.__exit__(None, None, None)
        assert gate.passthrough is False

        second.__exit__(None, None, None)
        assert gate.passthrough is True


class TestInstall:
    """Tests for replacing the process streams."""

    def test_install_routes_print_through_gate(self, output):
        gate = OutputGate(output)
        original_stdout, original_stderr = sys.stdout, sys.stderr
        gate.install()
        try:
            print("dropped")
            sys.stderr.write("also dropped")
            gate.enable()
            print("kept")
        finally:
            gate.uninstall()

        assert sys.stdout is original_stdout
        assert sys.stderr is original_stderr
        assert output.getvalue() == "kept\n"

    def test_uninstall_without_install_is_noop(self, output):
        original_stdout = sys.stdout
        OutputGate(output).uninstall()

        assert sys.stdout is original_stdout
