"""Push event normalisation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_BRANCH_REF = re.compile(r"^refs/heads/(.+)$")


@dataclass(frozen=True)
class PushEvent:
    """The parts of a GitHub push payload the pipeline cares about."""

    ref: str
    after: str
    repository_full_name: str
    head_commit_message: str | None = None
    pusher_name: str | None = None


def parse_push_event(payload: Any) -> PushEvent | None:
    """Extract a ``PushEvent`` from a decoded payload.

    Returns None when the payload is not an object or lacks ``ref``,
    ``after`` or ``repository.full_name``.
    """
    if not isinstance(payload, dict):
        return None

    ref = payload.get("ref")
    after = payload.get("after")
    repository = payload.get("repository")
    full_name = repository.get("full_name") if isinstance(repository, dict) else None

    if not isinstance(ref, str) or not ref:
        return None
    if not isinstance(after, str) or not after:
        return None
    if not isinstance(full_name, str) or not full_name:
        return None

    head_commit = payload.get("head_commit")
    message = head_commit.get("message") if isinstance(head_commit, dict) else None

    pusher = payload.get("pusher")
    pusher_name = pusher.get("name") if isinstance(pusher, dict) else None

    return PushEvent(
        ref=ref,
        after=after,
        repository_full_name=full_name,
        head_commit_message=message if isinstance(message, str) else None,
        pusher_name=pusher_name if isinstance(pusher_name, str) else None,
    )


def extract_branch(ref: str) -> str | None:
    """``refs/heads/main`` → ``main``; tags and anything else → None."""
    match = _BRANCH_REF.match(ref)
    return match.group(1) if match else None
