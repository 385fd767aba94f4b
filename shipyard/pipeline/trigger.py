from __future__ import annotations

import os
import re
from dataclasses import dataclass

__all__ = ["Trigger", "is_release_tag", "trigger_from_env"]

_TAG_PREFIX = "refs/tags/"
_BRANCH_PREFIX = "refs/heads/"

# v<major>.<minor>.<patch>[-prerelease][+build], SemVer 2.0 grammar.
_RELEASE_TAG_RE = re.compile(
    r"^v(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def is_release_tag(tag: str) -> bool:
    return _RELEASE_TAG_RE.match(tag) is not None


@dataclass(frozen=True, slots=True)
class Trigger:
    """The event that started a run.

    ``tag`` is set for tag refs (``refs/tags/v1.2.3``) and bare tag names
    (``v1.2.3``); branch refs never carry one.
    """

    ref: str
    tag: str | None

    @property
    def is_release(self) -> bool:
        return self.tag is not None and is_release_tag(self.tag)

    @classmethod
    def from_ref(cls, ref: str) -> Trigger:
        ref = ref.strip()
        if ref.startswith(_TAG_PREFIX):
            return cls(ref=ref, tag=ref[len(_TAG_PREFIX) :])
        if ref.startswith(_BRANCH_PREFIX) or ref.startswith("refs/"):
            return cls(ref=ref, tag=None)
        return cls(ref=ref, tag=ref or None)


def trigger_from_env() -> Trigger | None:
    """Trigger from GITHUB_REF when running inside a workflow."""
    ref = os.environ.get("GITHUB_REF")
    if not ref:
        return None
    return Trigger.from_ref(ref)
