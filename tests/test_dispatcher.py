"""Tests for command dispatch: routing, outcomes, bounded fallback."""

import pytest

from boxctl.commands import dispatch, invoke
from boxctl.core.errors import (
    AmbiguousRegistrationError,
    ConfigError,
    DispatchError,
    FunctionNotFoundError,
    InvocationError,
    ModuleImportError,
    UnknownCommandError,
)
from boxctl.hooks import ON_LOAD, run_hooks
from boxctl.modules import (
    CORE_RANK,
    OVERRIDE_RANK,
    MappingLookup,
    ModuleFunctionLookup,
    ModuleSource,
    build_registry,
)


def _mod(name, commands):
    return {"name": name, "version": "1.0.0", "commands": commands}


class Recorder:
    """Callable that records its calls and returns (or raises) a fixed value."""

    def __init__(self, result=0, exc=None):
        self.result = result
        self.exc = exc
        self.calls = []

    def __call__(self, command_path, arguments):
        self.calls.append((command_path, arguments))
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.fixture
def install_registry(roots, write_module):
    """Override + core both declare `install`."""
    override, core = roots
    write_module(core, "core", _mod("core", {"install": {"handler": "core_install"}}))
    write_module(override, "install", _mod("install", {"install": {"handler": "box_install"}}))
    return build_registry(
        [ModuleSource(override, OVERRIDE_RANK, "box"), ModuleSource(core, CORE_RANK, "core")]
    )


class TestCoreOnly:
    def test_core_handler_outcome_unchanged(self, roots, write_module):
        override, core = roots
        write_module(core, "core", _mod("core", {"build": {"handler": "core_build"}}))
        reg = build_registry([ModuleSource(override, 1), ModuleSource(core, 2)])
        fn = Recorder(result=3)
        outcome = dispatch(["build", "all"], ["--fast"], reg, MappingLookup({"core_build": fn}))
        assert outcome.exit_code == 3
        assert outcome.error is None
        assert outcome.fell_back is False
        assert fn.calls == [(["all"], ["--fast"])]

    def test_success(self, roots, write_module):
        override, core = roots
        write_module(core, "core", _mod("core", {"build": {"handler": "core_build"}}))
        reg = build_registry([ModuleSource(override, 1), ModuleSource(core, 2)])
        outcome = dispatch(["build"], [], reg, MappingLookup({"core_build": Recorder(None)}))
        assert outcome.ok
        assert outcome.command.function == "core_build"

    def test_core_invocation_failure_is_dispatch_error(self, roots, write_module):
        override, core = roots
        write_module(core, "core", _mod("core", {"build": {"handler": "core_build"}}))
        reg = build_registry([ModuleSource(override, 1), ModuleSource(core, 2)])
        lookup = MappingLookup({"core_build": Recorder(exc=RuntimeError("boom"))})
        outcome = dispatch(["build"], [], reg, lookup)
        assert isinstance(outcome.error, DispatchError)
        assert outcome.exit_code == 126
        assert "boom" in str(outcome.error)
        assert outcome.error.fallback_error is None


class TestOverride:
    def test_working_override_wins(self, install_registry):
        box, core = Recorder(0), Recorder(0)
        lookup = MappingLookup({"box_install": box, "core_install": core})
        outcome = dispatch(["install", "pkg"], [], install_registry, lookup)
        assert outcome.ok
        assert outcome.command.function == "box_install"
        assert box.calls == [(["pkg"], [])]
        assert core.calls == []

    def test_unresolvable_override_falls_back(self, install_registry):
        core = Recorder(0)
        lookup = MappingLookup({"core_install": core})
        outcome = dispatch(["install", "pkg"], [], install_registry, lookup)
        assert outcome.ok
        assert outcome.fell_back is True
        assert outcome.command.function == "core_install"
        assert core.calls == [(["pkg"], [])]

    def test_raising_override_falls_back_once(self, install_registry):
        box, core = Recorder(exc=ValueError("bad")), Recorder(4)
        lookup = MappingLookup({"box_install": box, "core_install": core})
        outcome = dispatch(["install"], [], install_registry, lookup)
        assert outcome.exit_code == 4
        assert outcome.fell_back is True
        assert len(box.calls) == 1
        assert len(core.calls) == 1

    def test_clean_nonzero_exit_passes_through(self, install_registry):
        box, core = Recorder(5), Recorder(0)
        lookup = MappingLookup({"box_install": box, "core_install": core})
        outcome = dispatch(["install"], [], install_registry, lookup)
        assert outcome.exit_code == 5
        assert outcome.error is None
        assert outcome.fell_back is False
        assert core.calls == []

    def test_system_exit_is_business_exit(self, install_registry):
        box, core = Recorder(exc=SystemExit(9)), Recorder(0)
        lookup = MappingLookup({"box_install": box, "core_install": core})
        outcome = dispatch(["install"], [], install_registry, lookup)
        assert outcome.exit_code == 9
        assert core.calls == []

    def test_both_fail_surfaces_override_failure(self, install_registry):
        box = Recorder(exc=RuntimeError("override broke"))
        core = Recorder(exc=RuntimeError("core broke"))
        lookup = MappingLookup({"box_install": box, "core_install": core})
        outcome = dispatch(["install"], [], install_registry, lookup)
        err = outcome.error
        assert isinstance(err, DispatchError)
        assert "override broke" in str(err.error)
        assert "core broke" in str(err.fallback_error)
        assert outcome.command.function == "box_install"
        assert len(core.calls) == 1

    def test_on_fallback_called(self, install_registry):
        seen = []
        lookup = MappingLookup({"core_install": Recorder(0)})
        dispatch(
            ["install"], [], install_registry, lookup, on_fallback=lambda e, err: seen.append(err)
        )
        assert len(seen) == 1
        assert isinstance(seen[0], FunctionNotFoundError)

    def test_raised_box_error_falls_back(self, install_registry):
        box, core = Recorder(exc=ConfigError("x.json", "broken")), Recorder(0)
        lookup = MappingLookup({"box_install": box, "core_install": core})
        outcome = dispatch(["install"], [], install_registry, lookup)
        assert outcome.ok
        assert outcome.fell_back is True
        assert len(core.calls) == 1

    def test_lookup_raising_falls_back(self, install_registry):
        core = Recorder(0)

        class FlakyLookup(MappingLookup):
            def resolve(self, module, function):
                if function == "box_install":
                    raise KeyError(function)
                return super().resolve(module, function)

        outcome = dispatch(["install"], [], install_registry, FlakyLookup({"core_install": core}))
        assert outcome.ok
        assert outcome.fell_back is True
        assert core.calls == [([], [])]

    def test_module_getattr_raising_falls_back(self, roots, write_module):
        override, core = roots
        write_module(
            core,
            "core",
            _mod("core", {"install": {"handler": "core_install"}}),
            "def core_install(path, args):\n    return 6\n",
        )
        write_module(
            override,
            "install",
            _mod("install", {"install": {"handler": "box_install"}}),
            "def __getattr__(name):\n    raise RuntimeError('lazy attr broke')\n",
        )
        reg = build_registry(
            [ModuleSource(override, OVERRIDE_RANK), ModuleSource(core, CORE_RANK)]
        )
        seen = []
        outcome = dispatch(
            ["install"], [], reg, ModuleFunctionLookup(),
            on_fallback=lambda e, err: seen.append(err),
        )
        assert outcome.exit_code == 6
        assert outcome.fell_back is True
        assert "lazy attr broke" in str(seen[0])

    def test_broken_import_runs_once_across_hooks_and_dispatch(
        self, tmp_path, roots, write_module
    ):
        override, core = roots
        marker = tmp_path / "imports.txt"
        write_module(
            core,
            "core",
            _mod("core", {"install": {"handler": "core_install"}}),
            "def core_install(path, args):\n    return 0\n",
        )
        data = _mod("install", {"install": {"handler": "box_install"}})
        data["hooks"] = {"on_load": "on_load"}
        write_module(
            override,
            "install",
            data,
            f"with open({str(marker)!r}, 'a') as f:\n    f.write('x')\n"
            "raise RuntimeError('broken module')\n",
        )
        reg = build_registry(
            [ModuleSource(override, OVERRIDE_RANK), ModuleSource(core, CORE_RANK)]
        )
        lookup = ModuleFunctionLookup()
        results = run_hooks(ON_LOAD, reg, lookup)
        outcome = dispatch(["install"], [], reg, lookup)
        assert isinstance(results[0].error, ModuleImportError)
        assert outcome.ok
        assert outcome.fell_back is True
        assert marker.read_text() == "x"

    def test_unsupported_return_triggers_fallback(self, install_registry):
        lookup = MappingLookup({"box_install": Recorder("yes"), "core_install": Recorder(0)})
        outcome = dispatch(["install"], [], install_registry, lookup)
        assert outcome.ok
        assert outcome.fell_back is True


class TestDispatcherBinding:
    def test_dispatcher_receives_full_path(self, roots, write_module):
        override, core = roots
        write_module(core, "route", _mod("route", {"route": {"dispatcher": "Invoke-Route"}}))
        reg = build_registry([ModuleSource(override, 1), ModuleSource(core, 2)])
        fn = Recorder(7)
        outcome = dispatch(["route", "sample", "x"], [], reg, MappingLookup({"Invoke-Route": fn}))
        assert fn.calls == [(["route", "sample", "x"], [])]
        assert outcome.exit_code == 7

    def test_dispatcher_name_snake_cased(self, roots, write_module):
        override, core = roots
        write_module(core, "route", _mod("route", {"route": {"dispatcher": "Invoke-Route"}}))
        reg = build_registry([ModuleSource(override, 1), ModuleSource(core, 2)])
        fn = Recorder(0)
        dispatch(["route", "a"], ["b"], reg, MappingLookup({"invoke_route": fn}))
        assert fn.calls == [(["route", "a"], ["b"])]

    def test_nested_unknown_falls_back(self, install_registry):
        box = Recorder(exc=UnknownCommandError("install nope"))
        core = Recorder(0)
        outcome = dispatch(
            ["install"], [], install_registry,
            MappingLookup({"box_install": box, "core_install": core}),
        )
        assert outcome.ok
        assert outcome.fell_back is True
        assert core.calls == [([], [])]


class TestTerminalErrors:
    def test_unknown_command(self, install_registry):
        fn = Recorder(0)
        outcome = dispatch(["nope"], [], install_registry, MappingLookup({"box_install": fn}))
        assert isinstance(outcome.error, UnknownCommandError)
        assert outcome.exit_code == 127
        assert outcome.command is None
        assert fn.calls == []

    def test_empty_path(self, install_registry):
        outcome = dispatch([], [], install_registry, MappingLookup({}))
        assert isinstance(outcome.error, UnknownCommandError)

    def test_ambiguous_command(self, roots, write_module):
        override, core = roots
        write_module(core, "one", _mod("one", {"build": {"handler": "b1"}}))
        write_module(core, "two", _mod("two", {"build": {"handler": "b2"}}))
        reg = build_registry([ModuleSource(override, 1), ModuleSource(core, 2)])
        b1, b2 = Recorder(0), Recorder(0)
        outcome = dispatch(["build"], [], reg, MappingLookup({"b1": b1, "b2": b2}))
        assert isinstance(outcome.error, AmbiguousRegistrationError)
        assert outcome.exit_code == 125
        assert b1.calls == [] and b2.calls == []


class TestInvoke:
    def test_bool_results(self, install_registry):
        cmd = install_registry.get("install").primary
        assert invoke(cmd, ["install"], [], MappingLookup({"box_install": Recorder(True)})) == 0
        assert invoke(cmd, ["install"], [], MappingLookup({"box_install": Recorder(False)})) == 1

    def test_exception_wrapped(self, install_registry):
        cmd = install_registry.get("install").primary
        lookup = MappingLookup({"box_install": Recorder(exc=KeyError("k"))})
        with pytest.raises(InvocationError, match="KeyError"):
            invoke(cmd, ["install"], [], lookup)
