"""
orchestra_console.deployments.steps

Wizard step sequence and forward-transition guards.

Responsibilities:
- Enumerate the five wizard steps.
- Provide a pure guard per step that must pass before leaving it.
"""

from __future__ import annotations

import enum
from collections.abc import Callable

from orchestra_console.deployments.draft import DeploymentDraft, DockerImageSource, GitSource


class WizardStep(enum.IntEnum):
    source = 1
    stack = 2
    config = 3
    environment = 4
    review = 5

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self is WizardStep.review


_LABELS = {
    WizardStep.source: "Source",
    WizardStep.stack: "Stack",
    WizardStep.config: "Config",
    WizardStep.environment: "Env",
    WizardStep.review: "Review",
}


class WizardValidationError(ValueError):
    """A local guard failed; no network call was made."""

    def __init__(self, step: WizardStep, message: str) -> None:
        self.step = step
        self.message = message
        super().__init__(message)


def _source_violation(draft: DeploymentDraft) -> str | None:
    if not draft.name.strip():
        return "Application name is required"
    if isinstance(draft.source, GitSource) and not draft.source.repo_url.strip():
        return "Repository URL is required for git sources"
    if isinstance(draft.source, DockerImageSource) and not draft.source.image_ref.strip():
        return "Docker image is required for docker image sources"
    return None


def _stack_violation(draft: DeploymentDraft) -> str | None:
    # Pre-built images have no build step, so no framework is needed.
    if not draft.uses_build_step:
        return None
    if not draft.framework_id:
        return "Select a framework"
    return None


def _always_allowed(_: DeploymentDraft) -> str | None:
    return None


_GUARDS: dict[WizardStep, Callable[[DeploymentDraft], str | None]] = {
    WizardStep.source: _source_violation,
    WizardStep.stack: _stack_violation,
    WizardStep.config: _always_allowed,
    WizardStep.environment: _always_allowed,
}


def guard_violation(step: WizardStep, draft: DeploymentDraft) -> str | None:
    """Return why `step` cannot be left, or None if advancing is allowed."""

    if step.is_terminal:
        return "Review is the last step; submit instead"
    return _GUARDS[step](draft)


def can_advance(step: WizardStep, draft: DeploymentDraft) -> bool:
    return guard_violation(step, draft) is None


def ensure_can_advance(step: WizardStep, draft: DeploymentDraft) -> None:
    violation = guard_violation(step, draft)
    if violation is not None:
        raise WizardValidationError(step, violation)
