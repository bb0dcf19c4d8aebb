from __future__ import annotations

from dataclasses import dataclass
from html.parser import HTMLParser
from pathlib import Path
from urllib.parse import unquote, urlsplit

_LINK_ATTRS = {"a": "href", "link": "href", "img": "src", "script": "src"}
_EXTERNAL_PREFIXES = ("http://", "https://", "mailto:", "tel:", "data:", "javascript:", "//")


@dataclass(frozen=True)
class AuditOptions:
    assume_extension: bool = False
    empty_alt_ignore: bool = False


@dataclass(frozen=True)
class SiteProblem:
    page: Path
    message: str

    def render(self, site: Path) -> str:
        try:
            rel = self.page.relative_to(site).as_posix()
        except ValueError:
            rel = self.page.as_posix()
        return f"{rel}: {self.message}"


class LinkParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.links: list[tuple[str, str]] = []
        self.images: list[tuple[str, str | None]] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attr = _LINK_ATTRS.get(tag)
        if attr is None:
            return
        values = dict(attrs)
        target = values.get(attr)
        if target:
            self.links.append((tag, target.strip()))
        if tag == "img":
            self.images.append((target or "", values.get("alt")))


def is_external(target: str) -> bool:
    return target.lower().startswith(_EXTERNAL_PREFIXES)


def _resolve(site: Path, page: Path, target: str, options: AuditOptions) -> Path | None:
    path_part = unquote(urlsplit(target).path)
    if not path_part:
        return None
    if path_part.startswith("/"):
        resolved = (site / path_part.lstrip("/")).resolve()
    else:
        resolved = (page.parent / path_part).resolve()
    if resolved.is_dir():
        return resolved / "index.html"
    if options.assume_extension and resolved.suffix == "" and not resolved.exists():
        return resolved.with_suffix(".html")
    return resolved


def audit_page(site: Path, page: Path, options: AuditOptions = AuditOptions()) -> list[SiteProblem]:
    parser = LinkParser()
    parser.feed(page.read_text(encoding="utf-8", errors="ignore"))
    problems: list[SiteProblem] = []
    for tag, target in parser.links:
        if target.startswith("#") or is_external(target):
            continue
        resolved = _resolve(site, page, target, options)
        if resolved is None:
            continue
        if not resolved.exists():
            problems.append(SiteProblem(page, f"broken internal link ({tag}) -> {target}"))
    for src, alt in parser.images:
        if alt is None:
            problems.append(SiteProblem(page, f"image without alt text -> {src or '<no src>'}"))
        elif not alt.strip() and not options.empty_alt_ignore:
            problems.append(SiteProblem(page, f"image with empty alt text -> {src or '<no src>'}"))
    return problems


def audit_site(site: Path, options: AuditOptions = AuditOptions()) -> list[SiteProblem]:
    problems: list[SiteProblem] = []
    for page in sorted(site.rglob("*.html")):
        if page.name == "404.html":
            continue
        problems.extend(audit_page(site, page, options))
    return problems
