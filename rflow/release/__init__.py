"""Release bounded context.

Layers:
- domain: branch naming, versions, release context and the guardrail engine
- resolve: turning a merge event into a ReleaseContext
- flow: phase executors, backflow, release-train initiation
- infra: git/gh/file adapters
- view: presentation of guardrail reports and results
"""

from __future__ import annotations
