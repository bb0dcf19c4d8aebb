from __future__ import annotations

from pathlib import Path

from ..pipeline.model import PipelineConfig
from ..site import AuditOptions, audit_site


def _site_options(config: PipelineConfig) -> tuple[str, AuditOptions]:
    for step in config.steps_using("htmlproofer"):
        return (
            str(step.options.get("site_dir", "./_site")),
            AuditOptions(
                assume_extension=bool(step.options.get("assume-extension", False)),
                empty_alt_ignore=bool(step.options.get("empty-alt-ignore", False)),
            ),
        )
    return "./_site", AuditOptions()


def check_site_internal_links(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    site_dir, options = _site_options(config)
    site = (repo_root / site_dir).resolve()
    if not site.is_dir():
        return 0, []
    problems = audit_site(site, options)
    return (0 if not problems else 1), [p.render(site) for p in problems]
