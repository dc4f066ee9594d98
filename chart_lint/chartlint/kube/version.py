"""Target Kubernetes version."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?(?:[-+].*)?$")


class KubeVersion(BaseModel):
    """Major/minor version of the cluster a chart is linted for."""

    model_config = ConfigDict(frozen=True)

    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> KubeVersion:
        match = _VERSION_RE.fullmatch(text.strip())
        if not match:
            raise ValueError(f"invalid kubernetes version {text!r}")
        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2)),
            patch=int(match.group(3) or 0),
        )

    @property
    def version(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"

    def at_least(self, major: int, minor: int) -> bool:
        return (self.major, self.minor) >= (major, minor)


DEFAULT_KUBE_VERSION = KubeVersion(major=1, minor=20)
