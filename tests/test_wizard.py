"""
tests.test_wizard

Deployment wizard controller: guards, side effects and submission.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from conftest import mock_gateway

from orchestra_console.auth.session import SessionManager
from orchestra_console.deployments.draft import EnvScope, SourceKind
from orchestra_console.deployments.steps import WizardStep, WizardValidationError
from orchestra_console.deployments.wizard import DeploymentWizard, WizardBusy
from orchestra_console.gateway.errors import RequestFailed


@pytest.fixture
def wizard(gateway, settings) -> DeploymentWizard:
    return DeploymentWizard(gateway=gateway, settings=settings)


async def _login(gateway, store) -> SessionManager:
    session = SessionManager(gateway=gateway, store=store)
    await session.restore()
    await session.login("admin@example.com", "secret")
    return session


def _fill_git_source(wizard: DeploymentWizard) -> None:
    wizard.set_name("demo")
    wizard.set_source_kind(SourceKind.git)
    wizard.set_repo_url("https://example.com/demo.git")


def _reference_data(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/clusters"):
        return httpx.Response(200, json={"clusters": [{"id": 7, "name": "prod-swarm"}], "count": 1})
    if request.url.path.endswith("/metadata/frameworks"):
        return httpx.Response(200, json=[])
    return httpx.Response(200, json={"applications": [], "count": 0})


def _walk_to_review(wizard: DeploymentWizard) -> None:
    while wizard.step is not WizardStep.review:
        wizard.advance()


@pytest.mark.asyncio
async def test_open_loads_catalog_and_clusters(gateway, store, wizard):
    await _login(gateway, store)

    await wizard.open()

    assert wizard.is_open
    assert [c.id for c in wizard.clusters] == [7, 9]
    assert [a.id for a in wizard.app_types] == ["web_service", "static_site"]
    assert [f.id for f in wizard.frameworks] == ["node", "python"]
    assert wizard.error is None


def test_git_source_blocks_until_repo_url_is_entered(wizard):
    wizard.set_name("demo")
    wizard.select_cluster(None)
    wizard.set_port("8080")

    assert not wizard.can_advance
    with pytest.raises(WizardValidationError) as exc:
        wizard.advance()
    assert exc.value.step is WizardStep.source
    assert wizard.step is WizardStep.source
    assert wizard.error == exc.value.message

    wizard.set_repo_url("https://example.com/demo.git")
    assert wizard.advance() is WizardStep.stack


def test_docker_image_skips_framework_requirement(wizard):
    wizard.set_name("cache")
    wizard.set_source_kind(SourceKind.docker_image)
    assert not wizard.can_advance
    wizard.set_image_ref("redis:7")

    wizard.advance()
    assert wizard.advance() is WizardStep.config


def test_git_source_requires_framework_at_stack_step(wizard):
    _fill_git_source(wizard)
    wizard.advance()

    with pytest.raises(WizardValidationError):
        wizard.advance()
    assert wizard.step is WizardStep.stack


@pytest.mark.asyncio
async def test_framework_defaults_propagate_one_way(gateway, store, wizard):
    await _login(gateway, store)
    await wizard.open()

    wizard.select_framework("node")
    assert (wizard.draft.build_command, wizard.draft.start_command) == ("npm install", "npm start")

    wizard.set_build_command("npm ci")
    wizard.select_framework("node")
    assert wizard.draft.build_command == "npm ci"

    wizard.select_framework("python")
    assert wizard.draft.build_command == "pip install -r requirements.txt"
    assert wizard.draft.start_command == "python app.py"

    with pytest.raises(WizardValidationError):
        wizard.select_framework("cobol")


@pytest.mark.asyncio
async def test_changing_app_type_clears_framework(gateway, store, wizard):
    await _login(gateway, store)
    await wizard.open()
    wizard.select_framework("node")

    wizard.select_app_type("static_site")

    assert wizard.draft.framework_id is None
    assert [f.id for f in wizard.frameworks] == ["gatsby"]


def test_source_switch_discards_inactive_variant_fields(wizard):
    _fill_git_source(wizard)
    wizard.set_source_kind(SourceKind.manual_path)

    with pytest.raises(WizardValidationError):
        wizard.set_repo_url("https://example.com/other.git")
    wizard.set_manual_path("/srv/demo")
    wizard.set_source_kind(SourceKind.git)

    assert wizard.draft.source.repo_url == ""
    assert wizard.draft.source.branch == "main"


def test_env_rows_removing_last_row_leaves_scope_empty(wizard):
    rows = wizard.env_rows(EnvScope.production)
    assert len(rows) == 1

    wizard.remove_env_row(EnvScope.production, 0)
    assert wizard.env_rows(EnvScope.production) == []
    assert len(wizard.env_rows(EnvScope.preview)) == 1

    wizard.add_env_row(EnvScope.production)
    wizard.update_env_row(EnvScope.production, 0, key="API_KEY", value="abc")
    assert wizard.env_rows(EnvScope.production)[0].key == "API_KEY"


def test_port_validation(wizard):
    wizard.set_port("")
    assert wizard.draft.port is None
    wizard.set_port(3000)
    assert wizard.draft.port == 3000
    for bad in ("http", "0", "70000"):
        with pytest.raises(WizardValidationError):
            wizard.set_port(bad)


def test_back_never_goes_below_first_step(wizard):
    _fill_git_source(wizard)
    wizard.advance()
    assert wizard.back() is WizardStep.source
    assert wizard.back() is WizardStep.source


@pytest.mark.asyncio
async def test_submit_without_any_cluster_aborts_locally(settings):
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    wizard = DeploymentWizard(gateway=mock_gateway(handler), settings=settings)
    wizard.set_name("cache")
    wizard.set_source_kind(SourceKind.docker_image)
    wizard.set_image_ref("redis:7")
    _walk_to_review(wizard)

    with pytest.raises(WizardValidationError) as exc:
        await wizard.submit()

    assert exc.value.message == "Please select a cluster"
    assert calls == []
    assert wizard.step is WizardStep.review


@pytest.mark.asyncio
async def test_submit_before_review_is_rejected(wizard):
    _fill_git_source(wizard)
    with pytest.raises(WizardValidationError):
        await wizard.submit()


@pytest.mark.asyncio
async def test_git_deployment_end_to_end(backend, gateway, store, wizard):
    await _login(gateway, store)
    await wizard.open()

    _fill_git_source(wizard)
    wizard.advance()
    wizard.select_framework("node")
    wizard.advance()
    wizard.set_port("3000")
    wizard.advance()
    wizard.update_env_row(EnvScope.production, 0, key="NODE_ENV", value="production")
    wizard.advance()
    assert wizard.can_submit

    await wizard.submit()

    payload = backend.submitted[-1]
    assert payload["source_type"] == "git"
    assert payload["repo_url"] == "https://example.com/demo.git"
    assert payload["branch"] == "main"
    assert "docker_image" not in payload
    assert "manual_path" not in payload
    assert payload["cluster_id"] == 7
    assert payload["build_type"] == "node"
    assert payload["port"] == 3000
    assert payload["env_vars"] == {"production": {"NODE_ENV": "production"}, "preview": {}}

    assert not wizard.is_open
    assert wizard.step is WizardStep.source
    assert wizard.draft.name == ""
    assert [a["name"] for a in wizard.applications] == ["demo"]


@pytest.mark.asyncio
async def test_explicit_cluster_selection_wins(backend, gateway, store, wizard):
    await _login(gateway, store)
    await wizard.open()
    wizard.set_name("cache")
    wizard.select_cluster(9)
    wizard.set_source_kind(SourceKind.docker_image)
    wizard.set_image_ref("redis:7")
    _walk_to_review(wizard)

    await wizard.submit()

    assert backend.submitted[-1]["cluster_id"] == 9
    assert backend.submitted[-1]["build_type"] == "docker"
    with pytest.raises(WizardValidationError):
        wizard.select_cluster(404)


@pytest.mark.asyncio
async def test_submit_failure_keeps_draft_on_review(backend, gateway, store, wizard):
    await _login(gateway, store)
    await wizard.open()
    backend.create_failure = (422, "image not found")
    wizard.set_name("cache")
    wizard.set_source_kind(SourceKind.docker_image)
    wizard.set_image_ref("redis:404")
    _walk_to_review(wizard)

    with pytest.raises(RequestFailed):
        await wizard.submit()

    assert wizard.error == "image not found"
    assert wizard.step is WizardStep.review
    assert wizard.draft.source.image_ref == "redis:404"
    assert not wizard.submitting
    assert backend.applications == []

    backend.create_failure = None
    wizard.set_image_ref("redis:7")
    await wizard.submit()
    assert len(backend.applications) == 1


@pytest.mark.asyncio
async def test_single_outstanding_submission_and_late_response_discarded(settings):
    release = asyncio.Event()
    posted: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            posted.append(request)
            await release.wait()
            return httpx.Response(201, json={"id": 1})
        return _reference_data(request)

    wizard = DeploymentWizard(gateway=mock_gateway(handler), settings=settings)
    await wizard.open()
    wizard.set_name("cache")
    wizard.select_cluster(7)
    wizard.set_source_kind(SourceKind.docker_image)
    wizard.set_image_ref("redis:7")
    _walk_to_review(wizard)

    pending = asyncio.create_task(wizard.submit())
    await asyncio.sleep(0)
    while not posted:
        await asyncio.sleep(0)

    assert wizard.submitting
    assert not wizard.can_submit
    with pytest.raises(WizardBusy):
        await wizard.submit()

    wizard.close()
    release.set()
    await pending

    assert len(posted) == 1
    assert wizard.step is WizardStep.source
    assert wizard.draft.name == ""
    assert not wizard.submitting
    assert wizard.applications == []


@pytest.mark.asyncio
async def test_edits_on_review_are_rechecked_before_submit(settings):
    posted: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            posted.append(request)
            return httpx.Response(201, json={"id": 1})
        return _reference_data(request)

    wizard = DeploymentWizard(gateway=mock_gateway(handler), settings=settings)
    await wizard.open()
    wizard.set_name("cache")
    wizard.set_source_kind(SourceKind.docker_image)
    wizard.set_image_ref("redis:7")
    _walk_to_review(wizard)

    wizard.set_name("")
    with pytest.raises(WizardValidationError) as exc:
        await wizard.submit()
    assert exc.value.step is WizardStep.source
    assert wizard.error == "Application name is required"

    # Switching to git on Review leaves an empty repository URL and no framework.
    wizard.set_name("cache")
    wizard.set_source_kind(SourceKind.git)
    with pytest.raises(WizardValidationError):
        await wizard.submit()
    wizard.set_repo_url("https://example.com/cache.git")
    with pytest.raises(WizardValidationError) as exc:
        await wizard.submit()
    assert exc.value.step is WizardStep.stack

    assert posted == []
    assert wizard.step is WizardStep.review
    assert not wizard.submitting


@pytest.mark.asyncio
async def test_unknown_cluster_is_rejected_when_cluster_list_failed(settings):
    posted: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            posted.append(request)
            return httpx.Response(201, json={"id": 1})
        if request.url.path.endswith("/clusters"):
            return httpx.Response(500, json={"message": "cluster service down"})
        return _reference_data(request)

    wizard = DeploymentWizard(gateway=mock_gateway(handler), settings=settings)
    await wizard.open()
    assert wizard.clusters == []
    assert wizard.error == "cluster service down"

    with pytest.raises(WizardValidationError) as exc:
        wizard.select_cluster(404)
    assert exc.value.message == "Unknown cluster: 404"
    assert wizard.draft.cluster_id is None

    wizard.draft.cluster_id = 404
    wizard.set_name("cache")
    wizard.set_source_kind(SourceKind.docker_image)
    wizard.set_image_ref("redis:7")
    _walk_to_review(wizard)
    with pytest.raises(WizardValidationError) as exc:
        await wizard.submit()

    assert exc.value.message == "Unknown cluster: 404"
    assert posted == []


@pytest.mark.asyncio
async def test_failure_arriving_after_close_is_discarded(settings):
    release = asyncio.Event()
    posted: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            posted.append(request)
            await release.wait()
            return httpx.Response(500, json={"message": "build farm unavailable"})
        return _reference_data(request)

    wizard = DeploymentWizard(gateway=mock_gateway(handler), settings=settings)
    await wizard.open()
    wizard.set_name("cache")
    wizard.set_source_kind(SourceKind.docker_image)
    wizard.set_image_ref("redis:7")
    _walk_to_review(wizard)

    pending = asyncio.create_task(wizard.submit())
    while not posted:
        await asyncio.sleep(0)
    wizard.close()
    release.set()

    assert await pending is None
    assert wizard.error is None
    assert wizard.step is WizardStep.source
    assert not wizard.submitting


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "body", "message"),
    [
        ("/metadata/frameworks", {"bad": 1}, "Framework catalog response was malformed"),
        ("/clusters", {"clusters": [{"id": "x"}]}, "Cluster list response was malformed"),
    ],
)
async def test_malformed_reference_data_sets_error_instead_of_raising(settings, path, body, message):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith(path):
            return httpx.Response(200, json=body)
        return _reference_data(request)

    wizard = DeploymentWizard(gateway=mock_gateway(handler), settings=settings)
    await wizard.open()

    assert wizard.is_open
    assert wizard.error == message
