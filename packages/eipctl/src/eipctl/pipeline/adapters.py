"""Tool adapters for pipeline steps.

External adapters render a step's ``with`` options into the argv of an
off-the-shelf validator. Native adapters run in-process against the
checked-out corpus. Both report through the process exit code only.
"""

from __future__ import annotations

import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_ARTIFACT, ERR_CONFIG, ERR_JOB_FAILED, OK
from ..corpus.ranges import parse_number_ranges

if TYPE_CHECKING:
    from ..core.context import RunContext
    from .model import PipelineConfig

_TIMEFRAME_RE = re.compile(r"^\d+[smhdwMy]$")
_LOG_LEVELS = (":debug", ":info", ":warn", ":error", ":fatal")


@dataclass(frozen=True)
class OptionSpec:
    name: str
    kind: str
    default: Any = None
    required: bool = False


@dataclass(frozen=True)
class StepContext:
    ctx: RunContext
    config: PipelineConfig
    job_id: str
    env: Mapping[str, str] = field(default_factory=dict)

    @property
    def repo_root(self) -> Path:
        return self.ctx.repo_root


@dataclass(frozen=True)
class NativeOutcome:
    code: int
    lines: tuple[str, ...] = ()
    skipped: bool = False


def _as_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    raise ValueError("expected a list or a comma separated string")


def _coerce(spec: OptionSpec, value: Any) -> Any:
    if spec.kind == "bool":
        if not isinstance(value, bool):
            raise ValueError("expected a boolean")
        return value
    if spec.kind in {"str", "path"}:
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValueError("expected a string")
        text = str(value).strip()
        if not text:
            raise ValueError("must not be empty")
        return text
    if spec.kind == "list":
        return tuple(_as_list(value))
    if spec.kind == "range":
        ranges = parse_number_ranges(value)
        if not ranges:
            raise ValueError("expected at least one number")
        return ranges
    if spec.kind == "timeframe":
        text = str(value).strip()
        if not _TIMEFRAME_RE.match(text):
            raise ValueError("expected <int><unit> with unit one of s m h d w M y")
        return text
    if spec.kind == "log-level":
        text = str(value).strip()
        text = text if text.startswith(":") else f":{text}"
        if text not in _LOG_LEVELS:
            raise ValueError(f"expected one of {', '.join(_LOG_LEVELS)}")
        return text
    raise ValueError(f"unsupported option kind `{spec.kind}`")


class ToolAdapter:
    adapter_id: str = ""
    description: str = ""
    options: tuple[OptionSpec, ...] = ()
    native: bool = False
    command: tuple[str, ...] = ()

    def option_names(self) -> list[str]:
        return [spec.name for spec in self.options]

    def normalize(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        known = {spec.name: spec for spec in self.options}
        unknown = sorted(set(raw) - set(known))
        if unknown:
            raise ScriptError(
                f"{self.adapter_id}: unknown option(s) {', '.join(unknown)}; recognized: {', '.join(self.option_names())}",
                ERR_CONFIG,
                kind="unknown_option",
            )
        out: dict[str, Any] = {}
        for spec in self.options:
            if spec.name not in raw or raw[spec.name] is None:
                if spec.required:
                    raise ScriptError(f"{self.adapter_id}: missing required option `{spec.name}`", ERR_CONFIG, kind="missing_option")
                if spec.default is not None:
                    out[spec.name] = _coerce(spec, spec.default)
                continue
            try:
                out[spec.name] = _coerce(spec, raw[spec.name])
            except ValueError as exc:
                raise ScriptError(f"{self.adapter_id}: option `{spec.name}` {exc}", ERR_CONFIG, kind="invalid_option") from exc
        return out

    def argv(self, options: Mapping[str, Any], command: tuple[str, ...] = ()) -> list[str]:
        raise NotImplementedError(f"{self.adapter_id} is a native step")

    def run(self, step: StepContext, options: Mapping[str, Any]) -> NativeOutcome:
        raise NotImplementedError(f"{self.adapter_id} is an external step")


class HtmlProoferAdapter(ToolAdapter):
    adapter_id = "htmlproofer"
    description = "audit the generated site for broken links, malformed markup and missing metadata"
    command = ("bundle", "exec", "htmlproofer")
    options = (
        OptionSpec("site_dir", "path", default="./_site"),
        OptionSpec("check-html", "bool"),
        OptionSpec("check-opengraph", "bool"),
        OptionSpec("report-missing-names", "bool"),
        OptionSpec("log-level", "log-level"),
        OptionSpec("assume-extension", "bool"),
        OptionSpec("empty-alt-ignore", "bool"),
        OptionSpec("timeframe", "timeframe"),
        OptionSpec("disable-external", "bool"),
    )

    def argv(self, options: Mapping[str, Any], command: tuple[str, ...] = ()) -> list[str]:
        out = [*(command or self.command), str(options["site_dir"])]
        for spec in self.options[1:]:
            if spec.name not in options:
                continue
            value = options[spec.name]
            if spec.kind == "bool":
                if value:
                    out.append(f"--{spec.name}")
            else:
                out.append(f"--{spec.name}={value}")
        return out


class CodespellAdapter(ToolAdapter):
    adapter_id = "codespell"
    description = "spell check repository text against the dictionary and the allow-list"
    command = ("codespell",)
    options = (
        OptionSpec("check_filenames", "bool"),
        OptionSpec("ignore_words_file", "path"),
        OptionSpec("skip", "list"),
    )

    def argv(self, options: Mapping[str, Any], command: tuple[str, ...] = ()) -> list[str]:
        out = list(command or self.command)
        if options.get("check_filenames"):
            out.append("--check-filenames")
        if "ignore_words_file" in options:
            out.append(f"--ignore-words={options['ignore_words_file']}")
        if options.get("skip"):
            out.append("--skip=" + ",".join(options["skip"]))
        return out


class EipvAdapter(ToolAdapter):
    adapter_id = "eipv"
    description = "first proposal-format linter (rule ignore list and file skip list)"
    command = ("eipv",)
    options = (
        OptionSpec("path", "path", default="EIPS/"),
        OptionSpec("ignore", "list"),
        OptionSpec("skip", "list"),
    )

    def argv(self, options: Mapping[str, Any], command: tuple[str, ...] = ()) -> list[str]:
        out = [*(command or self.command), str(options["path"])]
        if options.get("ignore"):
            out.append("--ignore=" + ",".join(options["ignore"]))
        if options.get("skip"):
            out.append("--skip=" + ",".join(options["skip"]))
        return out


class EipwAdapter(ToolAdapter):
    adapter_id = "eipw"
    description = "second proposal-format linter (unchecked proposal number ranges)"
    command = ("eipw",)
    options = (
        OptionSpec("path", "path", default="EIPS/"),
        OptionSpec("unchecked", "range"),
    )

    def argv(self, options: Mapping[str, Any], command: tuple[str, ...] = ()) -> list[str]:
        out = list(command or self.command)
        if "unchecked" in options:
            for number in options["unchecked"].numbers():
                out.extend(["--unchecked", str(number)])
        out.append(str(options["path"]))
        return out


class HandoffAdapter(ToolAdapter):
    adapter_id = "handoff"
    description = "persist pull-request metadata for a deferred validator"
    native = True
    options = (
        OptionSpec("dir", "path", default="pr"),
        OptionSpec("pr_number", "str"),
        OptionSpec("pr_sha", "str"),
        OptionSpec("merge_sha", "str"),
    )

    def run(self, step: StepContext, options: Mapping[str, Any]) -> NativeOutcome:
        from ..core.fs import ensure_evidence_path, ensure_output_dir
        from ..handoff import MANIFEST_NAME, resolve_record, write_handoff

        record = resolve_record(
            step.env,
            pr_number=options.get("pr_number"),
            pr_sha=options.get("pr_sha"),
            merge_sha=options.get("merge_sha"),
        )
        if record is None:
            return NativeOutcome(OK, ("no pull request metadata in this event; nothing to hand off",), skipped=True)
        out_dir = ensure_output_dir(step.ctx, Path(str(options["dir"])))
        manifest = ensure_evidence_path(step.ctx, step.ctx.run_dir / "handoff" / step.job_id / MANIFEST_NAME)
        written = write_handoff(out_dir, record, manifest)
        lines = [f"wrote {path.name}" for path in written]
        lines.append(f"recorded {MANIFEST_NAME} in {manifest.parent}")
        return NativeOutcome(OK, tuple(lines))


class UploadArtifactAdapter(ToolAdapter):
    adapter_id = "upload-artifact"
    description = "copy a directory into the run's named artifact area"
    native = True
    options = (
        OptionSpec("name", "str", required=True),
        OptionSpec("path", "path", required=True),
        OptionSpec("if-no-files-found", "str", default="warn"),
    )

    def run(self, step: StepContext, options: Mapping[str, Any]) -> NativeOutcome:
        from ..core.fs import ensure_evidence_path

        mode = str(options["if-no-files-found"])
        if mode not in {"warn", "error", "ignore"}:
            raise ScriptError(f"upload-artifact: `if-no-files-found` must be warn, error or ignore, got `{mode}`", ERR_CONFIG)
        source = (step.repo_root / str(options["path"])).resolve()
        files = sorted(p for p in source.rglob("*") if p.is_file()) if source.is_dir() else ([source] if source.is_file() else [])
        if not files:
            message = f"no files found at `{options['path']}` for artifact `{options['name']}`"
            if mode == "error":
                return NativeOutcome(ERR_ARTIFACT, (message,))
            return NativeOutcome(OK, (message,) if mode == "warn" else (), skipped=True)
        dest_root = step.ctx.run_dir / "artifacts" / str(options["name"])
        lines: list[str] = []
        for path in files:
            rel = path.relative_to(source) if source.is_dir() else Path(path.name)
            dest = ensure_evidence_path(step.ctx, dest_root / rel)
            shutil.copyfile(path, dest)
            lines.append(f"uploaded {rel.as_posix()}")
        return NativeOutcome(OK, tuple(lines))


class ChecksAdapter(ToolAdapter):
    adapter_id = "checks"
    description = "run native corpus and configuration invariant checks"
    native = True
    options = (OptionSpec("domain", "str", default="all"),)

    def run(self, step: StepContext, options: Mapping[str, Any]) -> NativeOutcome:
        from ..checks.runner import run_domain

        code, payload = run_domain(step.repo_root, step.config, str(options["domain"]))
        lines: list[str] = []
        for row in payload.get("checks", []):
            lines.append(f"{str(row['status']).upper()} {row['id']}")
            lines.extend(f"  - {err}" for err in row["errors"])
        if "error" in payload:
            lines.append(str(payload["error"]))
        return NativeOutcome(code, tuple(lines))


class SiteLinksAdapter(ToolAdapter):
    adapter_id = "site-links"
    description = "verify every internal link in the generated site resolves"
    native = True
    options = (
        OptionSpec("site_dir", "path", default="./_site"),
        OptionSpec("assume-extension", "bool", default=False),
        OptionSpec("empty-alt-ignore", "bool", default=False),
    )

    def run(self, step: StepContext, options: Mapping[str, Any]) -> NativeOutcome:
        from ..site import AuditOptions, audit_site

        site = (step.repo_root / str(options["site_dir"])).resolve()
        if not site.is_dir():
            return NativeOutcome(ERR_JOB_FAILED, (f"site dir missing: {options['site_dir']}",))
        problems = audit_site(
            site,
            AuditOptions(assume_extension=bool(options["assume-extension"]), empty_alt_ignore=bool(options["empty-alt-ignore"])),
        )
        return NativeOutcome(ERR_JOB_FAILED if problems else OK, tuple(p.render(site) for p in problems))


ADAPTERS: dict[str, ToolAdapter] = {
    adapter.adapter_id: adapter
    for adapter in (
        HtmlProoferAdapter(),
        CodespellAdapter(),
        EipvAdapter(),
        EipwAdapter(),
        HandoffAdapter(),
        UploadArtifactAdapter(),
        ChecksAdapter(),
        SiteLinksAdapter(),
    )
}


def get_adapter(adapter_id: str) -> ToolAdapter:
    try:
        return ADAPTERS[adapter_id]
    except KeyError:
        raise ScriptError(
            f"unknown step `uses: {adapter_id}`; known: {', '.join(sorted(ADAPTERS))}",
            ERR_CONFIG,
            kind="unknown_adapter",
        ) from None
