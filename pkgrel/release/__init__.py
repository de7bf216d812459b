"""Release flows.

- version/packages/naming: inputs shared by both flows
- prepare: cut isolated per-package release branches and bump the version
- distribute: push those branches to the remote
"""

from __future__ import annotations
