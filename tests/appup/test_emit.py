"""Tests for appup/emit.py module.

Covers:
- render_appup() layout
- default_targets()
- emit() per-target writes and failure reporting
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from appupgen.appup.emit import default_targets, emit, now_str, render_appup
from appupgen.appup.models import (
    AddModule,
    DeleteModule,
    LoadModule,
    UpdateSupervisor,
    UpdateWithMigration,
    UpgradePlan,
)
from appupgen.core.errors import ErrorCode, PlanWriteError
from appupgen.terms.parser import parse_terms
from appupgen.terms.types import Atom

TS = "2024/05/01 10:00:00"


def _plan(*instructions: object) -> UpgradePlan:
    return UpgradePlan(
        app="myapp",
        old_version="1.0",
        new_version="1.1",
        instructions=tuple(instructions),  # type: ignore[arg-type]
    )


class TestRenderAppup:
    def test_layout(self) -> None:
        text = render_appup(_plan(LoadModule("myapp_util")), "appupgen", TS)
        assert text == (
            '%% appup generated for myapp by appupgen ("2024/05/01 10:00:00")\n'
            '{"1.1", [{"1.0", [{load_module,myapp_util,[]}]}], [{"1.0", []}]}.\n'
        )

    def test_every_instruction_kind(self) -> None:
        plan = _plan(
            AddModule("n"),
            DeleteModule("d"),
            UpdateSupervisor("s"),
            UpdateWithMigration("w", ("x", "y")),
            LoadModule("l", ("x",)),
        )
        body = render_appup(plan, "appupgen", TS).splitlines()[1]
        assert body == (
            '{"1.1", [{"1.0", [{add_module,n},{delete_module,d},{update,s,supervisor},'
            '{update,w,{advanced,[]},[x,y]},{load_module,l,[x]}]}], [{"1.0", []}]}.'
        )

    def test_empty_plan(self) -> None:
        body = render_appup(_plan(), "appupgen", TS).splitlines()[1]
        assert body == '{"1.1", [{"1.0", []}], [{"1.0", []}]}.'

    def test_output_is_a_consultable_term(self) -> None:
        plan = _plan(UpdateSupervisor("my_sup"), LoadModule("'odd-name'"))
        (term,) = parse_terms(render_appup(plan, "appupgen", TS))
        assert term == plan.to_term()
        assert term[1][0][1][0] == (Atom("update"), Atom("my_sup"), Atom("supervisor"))

    def test_quoted_app_name_in_header(self) -> None:
        plan = UpgradePlan(app="Elixir.App", old_version="1", new_version="2")
        header = render_appup(plan, "appupgen", TS).splitlines()[0]
        assert header == (
            "%% appup generated for 'Elixir.App' by appupgen (\"2024/05/01 10:00:00\")"
        )

    def test_now_str_format(self) -> None:
        assert now_str(datetime(2024, 1, 2, 3, 4, 5)) == "2024/01/02 03:04:05"


class TestDefaultTargets:
    def test_new_release_and_build_output(self, tmp_path: Path) -> None:
        new_ebin = tmp_path / "rel" / "lib" / "myapp-1.1" / "ebin"
        build_ebin = tmp_path / "_build" / "lib" / "myapp" / "ebin"
        assert default_targets("myapp", new_ebin, build_ebin) == [
            new_ebin / "myapp.appup",
            build_ebin / "myapp.appup",
        ]

    def test_target_dir_overrides(self, tmp_path: Path) -> None:
        targets = default_targets("myapp", tmp_path / "a", tmp_path / "b", tmp_path / "out")
        assert targets == [tmp_path / "out" / "myapp.appup"]


class TestEmit:
    """Given a plan and targets, When emitted, Then every target gets the same bytes."""

    def test_writes_identical_content(self, tmp_path: Path) -> None:
        targets = [tmp_path / "one.appup", tmp_path / "two.appup"]

        result = emit(_plan(AddModule("n")), targets, timestamp=TS)

        assert result.ok
        assert result.written == tuple(targets)
        assert targets[0].read_bytes() == targets[1].read_bytes()
        assert targets[0].read_text() == render_appup(_plan(AddModule("n")), "appupgen", TS)

    def test_tool_name_in_header(self, tmp_path: Path) -> None:
        target = tmp_path / "x.appup"
        emit(_plan(), [target], tool_name="rebar3_appup_plugin", timestamp=TS)
        assert target.read_text().startswith(
            "%% appup generated for myapp by rebar3_appup_plugin ("
        )

    def test_one_broken_target(self, tmp_path: Path) -> None:
        broken = tmp_path / "missing-parent" / "myapp.appup"
        good = tmp_path / "myapp.appup"

        with pytest.raises(PlanWriteError) as exc_info:
            emit(_plan(LoadModule("m")), [broken, good], timestamp=TS)

        assert good.read_text() == render_appup(_plan(LoadModule("m")), "appupgen", TS)
        assert not broken.exists()
        error = exc_info.value
        assert error.code == ErrorCode.PLAN_WRITE_FAILED
        assert [f["path"] for f in error.details["failed"]] == [str(broken)]
        assert error.details["written"] == [str(good)]
        assert str(broken) in error.message
        assert str(good) not in error.message

    def test_earlier_writes_not_rolled_back(self, tmp_path: Path) -> None:
        good = tmp_path / "first.appup"
        broken = tmp_path / "nope" / "second.appup"
        with pytest.raises(PlanWriteError):
            emit(_plan(), [good, broken], timestamp=TS)
        assert good.is_file()

    def test_no_targets(self) -> None:
        result = emit(_plan(), [], timestamp=TS)
        assert result.ok
        assert result.written == ()
