"""
orchestra_console.deployments.wizard

Deployment wizard controller.

Responsibilities:
- Drive the Source -> Stack -> Config -> Environment -> Review sequence over one draft.
- Gate forward movement on the step guards.
- Submit the assembled payload exactly once and reset on success.
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Any

from pydantic import ValidationError

from orchestra_console.deployments.catalog import (
    AppType,
    ClusterRef,
    Framework,
    find_framework,
    parse_app_types,
    parse_clusters,
)
from orchestra_console.deployments.draft import (
    DeploymentDraft,
    DockerImageSource,
    EnvScope,
    EnvVarRow,
    GitSource,
    ManualPathSource,
    SourceKind,
    build_payload,
    empty_source,
)
from orchestra_console.deployments.steps import (
    WizardStep,
    WizardValidationError,
    can_advance,
    ensure_can_advance,
)
from orchestra_console.gateway.client import ApiGatewayClient
from orchestra_console.gateway.errors import GatewayError, Unauthenticated
from orchestra_console.observability.logging import get_logger
from orchestra_console.settings import Settings

log = get_logger(__name__)


class WizardBusy(RuntimeError):
    """A submission is already outstanding for this wizard."""


class DeploymentWizard:
    """
    One wizard instance per "New Deployment" dialog.

    The draft is only mutated through this controller. Closing the dialog resets the
    draft; a submission response that arrives after a reset is discarded.
    """

    def __init__(self, *, gateway: ApiGatewayClient, settings: Settings) -> None:
        self._gateway = gateway
        self._settings = settings

        self.clusters: list[ClusterRef] = []
        self.app_types: list[AppType] = []
        self.applications: list[dict[str, Any]] = []
        self.is_open = False
        self.error: str | None = None

        # Incremented on every reset; in-flight submissions compare against it.
        self._epoch = 0
        self._submitting = False
        self._step = WizardStep.source
        self._draft = self._new_draft()

    def _new_draft(self) -> DeploymentDraft:
        return DeploymentDraft(
            source=GitSource(branch=self._settings.default_branch),
            app_type=self._settings.default_app_type,
        )

    # --- State --------------------------------------------------------------

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def draft(self) -> DeploymentDraft:
        return self._draft

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def can_advance(self) -> bool:
        return not self._step.is_terminal and can_advance(self._step, self._draft)

    @property
    def can_submit(self) -> bool:
        return self._step.is_terminal and not self._submitting

    @property
    def frameworks(self) -> list[Framework]:
        for app_type in self.app_types:
            if app_type.id == self._draft.app_type:
                return list(app_type.frameworks)
        return []

    # --- Lifecycle ----------------------------------------------------------

    async def open(self) -> None:
        self.reset()
        self.is_open = True
        results = await asyncio.gather(
            self._gateway.list_frameworks(),
            self._gateway.list_clusters(),
            return_exceptions=True,
        )
        frameworks_res, clusters_res = results

        for res in results:
            if isinstance(res, Unauthenticated):
                raise res
            if isinstance(res, BaseException) and not isinstance(res, GatewayError):
                raise res

        if isinstance(frameworks_res, GatewayError):
            log.warning("wizard_frameworks_failed", error=frameworks_res.message)
            self.error = frameworks_res.message
        else:
            try:
                self.app_types = parse_app_types(frameworks_res)
            except ValidationError as e:
                log.warning("wizard_frameworks_malformed", errors=e.error_count())
                self.error = "Framework catalog response was malformed"

        if isinstance(clusters_res, GatewayError):
            log.warning("wizard_clusters_failed", error=clusters_res.message)
            self.error = clusters_res.message
        else:
            try:
                self.clusters = parse_clusters(clusters_res)
            except ValidationError as e:
                log.warning("wizard_clusters_malformed", errors=e.error_count())
                self.error = "Cluster list response was malformed"

    def close(self) -> None:
        self.is_open = False
        self.reset()

    cancel = close

    def reset(self) -> None:
        self._epoch += 1
        self._submitting = False
        self._step = WizardStep.source
        self._draft = self._new_draft()
        self.error = None

    # --- Navigation ---------------------------------------------------------

    def advance(self) -> WizardStep:
        try:
            ensure_can_advance(self._step, self._draft)
        except WizardValidationError as e:
            self.error = e.message
            raise
        self._step = WizardStep(self._step + 1)
        self.error = None
        log.info("wizard_step_advanced", step=self._step.label)
        return self._step

    def back(self) -> WizardStep:
        if self._step > WizardStep.source:
            self._step = WizardStep(self._step - 1)
        self.error = None
        return self._step

    # --- Step 1: source -----------------------------------------------------

    def set_name(self, name: str) -> None:
        self._draft.name = name

    def select_cluster(self, cluster_id: int | None) -> None:
        if cluster_id is not None and not self._is_known_cluster(cluster_id):
            raise WizardValidationError(self._step, f"Unknown cluster: {cluster_id}")
        self._draft.cluster_id = cluster_id

    def set_source_kind(self, kind: SourceKind) -> None:
        kind = SourceKind(kind)
        if self._draft.source_kind is kind:
            return
        self._draft.source = empty_source(kind, default_branch=self._settings.default_branch)

    def set_repo_url(self, repo_url: str) -> None:
        source = self._require_source(GitSource, "Repository URL")
        self._draft.source = dataclasses.replace(source, repo_url=repo_url)

    def set_branch(self, branch: str) -> None:
        source = self._require_source(GitSource, "Branch")
        self._draft.source = dataclasses.replace(source, branch=branch)

    def set_image_ref(self, image_ref: str) -> None:
        source = self._require_source(DockerImageSource, "Docker image")
        self._draft.source = dataclasses.replace(source, image_ref=image_ref)

    def set_manual_path(self, path: str) -> None:
        source = self._require_source(ManualPathSource, "Manual path")
        self._draft.source = dataclasses.replace(source, path=path)

    def _require_source(self, variant: type, field_label: str) -> Any:
        if not isinstance(self._draft.source, variant):
            raise WizardValidationError(
                self._step,
                f"{field_label} does not apply to {self._draft.source_kind.value} sources",
            )
        return self._draft.source

    # --- Step 2: stack ------------------------------------------------------

    def select_app_type(self, app_type_id: str) -> None:
        if app_type_id == self._draft.app_type:
            return
        self._draft.app_type = app_type_id
        self._draft.framework_id = None

    def select_framework(self, framework: Framework | str) -> None:
        if isinstance(framework, str):
            found = find_framework(self.app_types, framework)
            if found is None:
                raise WizardValidationError(self._step, f"Unknown framework: {framework}")
            framework = found
        if framework.id == self._draft.framework_id:
            # Re-selecting the same framework keeps manual command edits.
            return
        self._draft.framework_id = framework.id
        self._draft.build_command = framework.default_build_command
        self._draft.start_command = framework.default_start_command

    # --- Step 3: config -----------------------------------------------------

    def set_build_command(self, command: str) -> None:
        self._draft.build_command = command

    def set_start_command(self, command: str) -> None:
        self._draft.start_command = command

    def set_port(self, port: int | str | None) -> None:
        if port is None or (isinstance(port, str) and not port.strip()):
            self._draft.port = None
            return
        try:
            value = int(port)
        except (TypeError, ValueError) as e:
            raise WizardValidationError(self._step, f"Invalid port: {port}") from e
        if not 0 < value < 65536:
            raise WizardValidationError(self._step, f"Port out of range: {value}")
        self._draft.port = value

    def set_domain(self, domain: str) -> None:
        self._draft.domain = domain.strip()

    # --- Step 4: environment ------------------------------------------------

    def env_rows(self, scope: EnvScope) -> list[EnvVarRow]:
        return self._draft.env[EnvScope(scope)]

    def add_env_row(self, scope: EnvScope) -> None:
        self.env_rows(scope).append(EnvVarRow())

    def update_env_row(
        self,
        scope: EnvScope,
        index: int,
        *,
        key: str | None = None,
        value: str | None = None,
    ) -> None:
        row = self.env_rows(scope)[index]
        if key is not None:
            row.key = key
        if value is not None:
            row.value = value

    def remove_env_row(self, scope: EnvScope, index: int) -> None:
        # Removing the last row leaves the scope empty; only `add_env_row` adds one back.
        del self.env_rows(scope)[index]

    # --- Step 5: review / submit --------------------------------------------

    def _is_known_cluster(self, cluster_id: int) -> bool:
        return any(c.id == cluster_id for c in self.clusters)

    def resolve_cluster_id(self) -> int:
        cluster_id = self._draft.cluster_id
        if cluster_id:
            if not self._is_known_cluster(cluster_id):
                raise WizardValidationError(self._step, f"Unknown cluster: {cluster_id}")
            return cluster_id
        if self.clusters:
            return self.clusters[0].id
        raise WizardValidationError(self._step, "Please select a cluster")

    def preview_payload(self) -> dict[str, Any]:
        return build_payload(
            self._draft,
            cluster_id=self.resolve_cluster_id(),
            docker_build_type=self._settings.docker_build_type,
        )

    async def submit(self) -> Any:
        if self._submitting:
            raise WizardBusy("A deployment submission is already in progress")
        if not self._step.is_terminal:
            raise WizardValidationError(self._step, "Complete all steps before submitting")

        try:
            # Fields stay editable on Review, so the earlier guards are re-checked here.
            for step in (WizardStep.source, WizardStep.stack):
                ensure_can_advance(step, self._draft)
            payload = self.preview_payload()
        except WizardValidationError as e:
            self.error = e.message
            raise

        epoch = self._epoch
        self._submitting = True
        self.error = None
        try:
            result = await self._gateway.create_application(payload)
        except GatewayError as e:
            log.warning("wizard_submit_failed", error=e.message)
            if epoch != self._epoch:
                log.info("wizard_submission_discarded", outcome="failed")
                return None
            self._submitting = False
            self.error = e.message
            raise

        if epoch != self._epoch:
            # The wizard was closed while the request was in flight.
            log.info("wizard_submission_discarded", outcome="succeeded")
            return None

        log.info("wizard_submitted", name=payload["name"], source_type=payload["source_type"])
        self.close()
        await self.refresh_applications()
        return result

    async def refresh_applications(self) -> list[dict[str, Any]]:
        try:
            data = await self._gateway.list_applications()
        except Unauthenticated:
            raise
        except GatewayError as e:
            log.warning("applications_refresh_failed", error=e.message)
            self.error = e.message
            return self.applications
        self.applications = list((data or {}).get("applications") or [])
        return self.applications


# --- Module Notes -----------------------------------------------------------
# The application list is only updated by re-fetching after a confirmed success;
# nothing from the draft is applied to it optimistically.
