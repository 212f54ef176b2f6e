# SPDX-License-Identifier: AGPL-3.0-only
#
# Copyright (c) 2026 Pipegate Contributors
#
# This file is part of Pipegate.
#
# Pipegate is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 only.
#
# Pipegate is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.
# See the GNU Affero General Public License for more details.

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, TextIO

import yaml

from pipegate._version import _detect_version
from pipegate.core.errors import EmitError
from pipegate.decision.types import DecisionFailure, PipelineDecision, RunInfo

logger = logging.getLogger(__name__)

DecisionFormat = Literal["json", "yaml", "env"]
FORMATS: tuple[DecisionFormat, ...] = ("json", "yaml", "env")

SCHEMA_VERSION = 1
TOOL = "pipegate"

# GitHub Actions multiline syntax for $GITHUB_OUTPUT: key<<DELIM ... DELIM
ENV_MULTILINE_DELIMITER = "PIPEGATE_EOF"


def decision_document(
    decision: PipelineDecision,
    run: RunInfo | None = None,
    *,
    tool_version: str | None = None,
) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "schemaVersion": SCHEMA_VERSION,
        "tool": TOOL,
        "version": tool_version or _detect_version(),
    }
    doc.update(decision.to_dict())
    doc["run"] = run.to_dict() if run is not None else None
    return doc


# env (key=value) format


def _env_pairs(decision: PipelineDecision) -> list[tuple[str, str]]:
    pairs = [
        ("should_run", "true" if decision.should_run else "false"),
        ("workflow", decision.workflow.value),
        ("reason", decision.reason),
        ("matched_paths", json.dumps(list(decision.matched_paths), ensure_ascii=False)),
        ("fallback_used", "true" if decision.fallback_used else "false"),
    ]
    if decision.failure is not None:
        pairs.append(("failure_stage", decision.failure.stage))
        pairs.append(("failure_message", decision.failure.message))
    return pairs


def _render_env(decision: PipelineDecision) -> str:
    lines: list[str] = []
    for key, value in _env_pairs(decision):
        if "\n" in value or "\r" in value:
            if ENV_MULTILINE_DELIMITER in value.split("\n"):
                raise EmitError(
                    f"value of {key!r} contains the multiline delimiter",
                    code="invalid_document",
                )
            lines.append(f"{key}<<{ENV_MULTILINE_DELIMITER}")
            lines.append(value)
            lines.append(ENV_MULTILINE_DELIMITER)
        else:
            lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"


def _parse_bool(key: str, value: str) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValueError(f"{key} must be 'true' or 'false', got {value!r}")


def _parse_env(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    lines = text.split("\n")
    i = 0
    while i < len(lines):
        line = lines[i]
        i += 1
        if not line:
            continue
        if "<<" in line and ("=" not in line or line.index("<<") < line.index("=")):
            key, delimiter = line.split("<<", 1)
            body: list[str] = []
            while i < len(lines) and lines[i] != delimiter:
                body.append(lines[i])
                i += 1
            if i >= len(lines):
                raise ValueError(f"unterminated multiline value for {key!r}")
            i += 1
            values[key] = "\n".join(body)
            continue
        if "=" not in line:
            raise ValueError(f"malformed line: {line!r}")
        key, value = line.split("=", 1)
        values[key] = value
    return values


def _decision_from_env(values: Mapping[str, str]) -> PipelineDecision:
    paths = json.loads(values["matched_paths"])
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise ValueError("matched_paths must be a JSON list of strings")

    failure = None
    if "failure_stage" in values:
        failure = DecisionFailure(stage=values["failure_stage"], message=values.get("failure_message", ""))

    return PipelineDecision(
        should_run=_parse_bool("should_run", values["should_run"]),
        matched_paths=tuple(paths),
        reason=values["reason"],
        fallback_used=_parse_bool("fallback_used", values["fallback_used"]),
        failure=failure,
    )


# render / parse


def render_decision(
    decision: PipelineDecision,
    fmt: DecisionFormat = "json",
    run: RunInfo | None = None,
    *,
    tool_version: str | None = None,
) -> str:
    if fmt == "env":
        return _render_env(decision)

    doc = decision_document(decision, run, tool_version=tool_version)
    if fmt == "json":
        return json.dumps(doc, sort_keys=True, indent=2, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(doc, sort_keys=True, default_flow_style=False, allow_unicode=True)

    raise EmitError(f"unsupported decision format: {fmt!r}", code="unsupported_format")


def parse_document(text: str, fmt: DecisionFormat = "json") -> tuple[PipelineDecision, RunInfo | None]:
    """
    Parse an emitted decision document back.

    Raises:
        ValueError: if the document is malformed
    """
    if fmt == "env":
        try:
            return _decision_from_env(_parse_env(text)), None
        except KeyError as e:
            raise ValueError(f"missing key {e.args[0]!r}") from e

    if fmt == "json":
        data = json.loads(text)
    elif fmt == "yaml":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(str(e)) from e
    else:
        raise ValueError(f"unsupported decision format: {fmt!r}")

    if not isinstance(data, dict):
        raise ValueError("decision document root must be a mapping/object")

    try:
        decision = PipelineDecision.from_dict(data)
        run = RunInfo.from_dict(data["run"]) if data.get("run") else None
    except KeyError as e:
        raise ValueError(f"missing key {e.args[0]!r}") from e

    if not isinstance(decision.should_run, bool) or not isinstance(decision.fallback_used, bool):
        raise ValueError("shouldRun and fallbackUsed must be booleans")
    return decision, run


def parse_decision(text: str, fmt: DecisionFormat = "json") -> PipelineDecision:
    return parse_document(text, fmt)[0]


def _write_stream(sink: TextIO, text: str) -> None:
    try:
        sink.write(text)
    except UnicodeEncodeError:
        # paths git reported as undecodable bytes go out as those same bytes
        buffer = getattr(sink, "buffer", None)
        if buffer is None:
            raise
        sink.flush()
        buffer.write(text.encode(sink.encoding or "utf-8", "surrogateescape"))


class DecisionEmitter:
    """
    Serializes a PipelineDecision for a downstream CI consumer.

    Validate-then-write: the rendered text is parsed back and compared with
    the decision before anything reaches the sink.
    """

    def __init__(self, fmt: DecisionFormat = "json", *, tool_version: str | None = None) -> None:
        if fmt not in FORMATS:
            raise EmitError(f"unsupported decision format: {fmt!r}", code="unsupported_format")
        self.fmt = fmt
        self.tool_version = tool_version

    def render(self, decision: PipelineDecision, run: RunInfo | None = None) -> str:
        text = render_decision(decision, self.fmt, run, tool_version=self.tool_version)

        try:
            parsed, parsed_run = parse_document(text, self.fmt)
        except ValueError as e:
            raise EmitError(f"rendered {self.fmt} document does not parse: {e}", code="invalid_document") from e

        if parsed != decision or (self.fmt != "env" and parsed_run != run):
            raise EmitError(
                f"rendered {self.fmt} document does not reproduce the decision",
                code="invalid_document",
            )
        return text

    def emit(self, decision: PipelineDecision, sink: TextIO, run: RunInfo | None = None) -> None:
        text = self.render(decision, run)
        try:
            _write_stream(sink, text)
            sink.flush()
        except (OSError, ValueError) as e:
            raise EmitError(f"cannot write decision: {e}", code="sink_unavailable") from e

    def emit_to_path(
        self,
        decision: PipelineDecision,
        path: str | Path,
        run: RunInfo | None = None,
        *,
        append: bool = False,
    ) -> None:
        """
        Write the decision to ``path``.

        Overwrites go through a temporary file and an atomic rename so that a
        reader never sees a partial document. ``append`` adds to the existing
        file instead ($GITHUB_OUTPUT style).
        """
        text = self.render(decision, run)
        write_text_atomic(path, text, append=append)
        logger.debug("decision written to %s", path)


def write_text_atomic(path: str | Path, text: str, *, append: bool = False) -> None:
    """
    Raises:
        EmitError: if the file cannot be written
    """
    target = Path(path)
    try:
        if append:
            with open(target, "a", encoding="utf-8", errors="surrogateescape") as fh:
                fh.write(text)
            return

        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as fh:
                fh.write(text)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise EmitError(f"cannot write {target}: {e.strerror or e}", code="sink_unavailable") from e
    except UnicodeError as e:
        raise EmitError(f"cannot encode {target}: {e}", code="sink_unavailable") from e
