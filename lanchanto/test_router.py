"""Event routing decisions."""

from lanchanto.api_models import WorkflowRunEvent
from lanchanto.router import Dispatch, Ignore, UnknownRepository, route, route_event

ARTIFACTS_URL = "https://api.github.com/repos/octo/site/actions/runs/1/artifacts"


def _payload(action="completed", repo="octo/site", url=ARTIFACTS_URL) -> dict:
    return {
        "action": action,
        "repository": {"full_name": repo},
        "workflow_run": {"id": 1, "artifacts_url": url},
    }


class TestRoute:
    def test_completed_known_repo_dispatches(self, config):
        decision = route(_payload(), "completed", "octo/site", config)
        assert isinstance(decision, Dispatch)
        assert decision.deploy.repository == "octo/site"
        assert decision.artifacts_url == ARTIFACTS_URL

    def test_other_actions_ignored(self, config):
        for action in ("requested", "in_progress", "", "Completed"):
            decision = route(_payload(action), action, "octo/site", config)
            assert decision == Ignore(action)

    def test_ignore_wins_over_unknown_repo(self, config):
        decision = route(_payload("requested", "nobody/else"),
                         "requested", "nobody/else", config)
        assert isinstance(decision, Ignore)

    def test_unknown_repository(self, config):
        decision = route(_payload(repo="octo/other"),
                         "completed", "octo/other", config)
        assert decision == UnknownRepository("octo/other")

    def test_repository_match_is_exact(self, config):
        for name in ("Octo/Site", "octo/site ", "octo/sit", "octo"):
            decision = route(_payload(repo=name), "completed", name, config)
            assert isinstance(decision, UnknownRepository)

    def test_missing_artifacts_url_is_empty_string(self, config):
        payload = {"action": "completed",
                   "repository": {"full_name": "octo/site"}}
        decision = route(payload, "completed", "octo/site", config)
        assert isinstance(decision, Dispatch)
        assert decision.artifacts_url == ""

    def test_non_string_artifacts_url_is_empty_string(self, config):
        payload = _payload()
        payload["workflow_run"]["artifacts_url"] = None
        decision = route(payload, "completed", "octo/site", config)
        assert decision.artifacts_url == ""


class TestRouteEvent:
    def test_from_model(self, config):
        event = WorkflowRunEvent.model_validate(_payload())
        decision = route_event(event, config)
        assert isinstance(decision, Dispatch)
        assert decision.artifacts_url == ARTIFACTS_URL

    def test_ping_payload_is_ignored(self, config):
        event = WorkflowRunEvent.model_validate(
            {"zen": "Keep it logically awesome.", "hook_id": 1})
        assert isinstance(route_event(event, config), Ignore)

    def test_null_artifacts_url_is_empty_string(self, config):
        event = WorkflowRunEvent.model_validate(_payload(url=None))
        decision = route_event(event, config)
        assert isinstance(decision, Dispatch)
        assert decision.artifacts_url == ""
