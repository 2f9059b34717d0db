"""Host extraction and domain matching."""

from __future__ import annotations

import urllib.parse


def extract_host(url: str) -> str | None:
    """Return the lowercased host of *url*, or ``None`` if it has none."""
    try:
        host = urllib.parse.urlsplit(url.strip()).hostname
    except ValueError:
        return None
    return host or None


def normalize_domain(domain: str) -> str:
    """Lowercase *domain* and strip a leading ``www.``."""
    domain = domain.strip().lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def is_domain_match(input_host: str, target_host: str) -> bool:
    """Return ``True`` if *input_host* is *target_host* or one of its subdomains.

    The subdomain test requires a dot boundary, so ``notglobo.com`` does not
    match ``globo.com``.

    Args:
        input_host: Host being checked (e.g. the request host).
        target_host: Registered domain to match against.
    """
    normalized_input = normalize_domain(input_host)
    normalized_target = normalize_domain(target_host)
    if not normalized_target:
        return False
    return normalized_input == normalized_target or normalized_input.endswith(
        "." + normalized_target
    )


def parent_domains(host: str) -> list[str]:
    """Return *host* followed by each parent domain, most specific first.

    ``a.b.example.com`` yields ``["a.b.example.com", "b.example.com",
    "example.com"]``.  Single-label suffixes (``com``) are not included.
    """
    labels = normalize_domain(host).split(".")
    return [".".join(labels[i:]) for i in range(len(labels) - 1)] or [normalize_domain(host)]
