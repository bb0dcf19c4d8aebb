"""Internal link audit over a generated static site."""

from .links import AuditOptions, SiteProblem, audit_page, audit_site, is_external

__all__ = ["AuditOptions", "SiteProblem", "audit_page", "audit_site", "is_external"]
