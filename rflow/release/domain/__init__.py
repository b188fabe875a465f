"""Business rules: branch naming, versions, context model, guardrails."""
