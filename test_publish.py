# test_publish.py
import unittest
from unittest.mock import Mock, patch

from errors import JiraApiError, ReleaseError
from jira_client import JiraClient
from models import Commit, NextRelease, ReleaseContext, VersionRecord
from publish import DRY_RUN_VERSION_ID, publish, render_release_name
from settings import PluginConfig

EXISTING = VersionRecord(
    id="20001",
    name="v1.2.0",
    self_url="https://jira.example.com/rest/api/2/version/20001",
    released=False,
    archived=False,
    project_id=10000,
)


def _make_jira(versions=None):
    jira = Mock()
    jira.get_project.return_value = {"id": "10000", "key": "ABC"}
    jira.get_versions.return_value = list(versions or [])
    jira.create_version.return_value = VersionRecord(
        id="30003", name="v1.2.0", self_url="https://jira.example.com/version/30003", project_id=10000
    )
    return jira


def _http_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.content = b"" if payload is None else b"{}"
    response.json.return_value = payload
    return response


def _info_messages(logger):
    return [call.args[0] for call in logger.info.call_args_list]


class TestPublish(unittest.TestCase):
    def setUp(self):
        self.config = PluginConfig(ticketPrefixes=["ABC"], projectId="ABC", jiraHost="jira.example.com")
        self.context = ReleaseContext(
            commits=[
                Commit(message="fix: ABC-1 crash", short_hash="1111111"),
                Commit(message="feat: ABC-2 and ABC-3", short_hash="2222222"),
            ],
            next_release=NextRelease(version="1.2.0"),
            logger=Mock(),
        )

    def test_reuses_existing_version(self):
        jira = _make_jira([VersionRecord(id="1", name="v1.1.0"), EXISTING])

        result = publish(self.config, self.context, jira)

        jira.get_project.assert_called_once_with("ABC")
        jira.get_versions.assert_called_once_with("10000")
        jira.create_version.assert_not_called()
        self.assertEqual(
            [call.args for call in jira.edit_issue.call_args_list],
            [
                ("ABC-1", {"fixVersions": [{"add": {"id": "20001"}}]}),
                ("ABC-2", {"fixVersions": [{"add": {"id": "20001"}}]}),
                ("ABC-3", {"fixVersions": [{"add": {"id": "20001"}}]}),
            ],
        )
        self.assertEqual(result.release_id, "20001")
        self.assertEqual(result.url, EXISTING.self_url)
        self.assertEqual(result.to_dict()["projectId"], 10000)

    def test_first_matching_version_wins(self):
        duplicate = VersionRecord(id="99999", name="v1.2.0")
        jira = _make_jira([EXISTING, duplicate])
        result = publish(self.config, self.context, jira)
        self.assertEqual(result.release_id, "20001")

    def test_creates_missing_version(self):
        jira = _make_jira([VersionRecord(id="1", name="v1.1.0")])

        result = publish(self.config, self.context, jira)

        jira.create_version.assert_called_once_with("v1.2.0", "10000")
        self.assertEqual(result.release_id, "30003")
        self.assertEqual(jira.edit_issue.call_count, 3)

    def test_uses_release_name_template(self):
        config = self.config.model_copy(update={"release_name_template": "app-${version}"})
        jira = _make_jira()
        publish(config, self.context, jira)
        jira.create_version.assert_called_once_with("app-1.2.0", "10000")

    def test_dry_run_makes_no_mutating_calls(self):
        config = self.config.model_copy(update={"dry_run": True})
        jira = _make_jira()

        result = publish(config, self.context, jira)

        self.assertEqual(result.release_id, DRY_RUN_VERSION_ID)
        self.assertEqual(result.name, "v1.2.0")
        self.assertIsNone(result.url)
        jira.create_version.assert_not_called()
        jira.edit_issue.assert_not_called()
        messages = _info_messages(self.context.logger)
        for key in ("ABC-1", "ABC-2", "ABC-3"):
            self.assertIn(f"Adding issue {key} to 'v1.2.0'", messages)

    def test_project_lookup_failure_is_terminal(self):
        jira = _make_jira()
        jira.get_project.side_effect = JiraApiError(404, "No project could be found")

        with self.assertRaises(ReleaseError) as ctx:
            publish(self.config, self.context, jira)

        self.assertIn("Invalid projectId ABC", ctx.exception.message)
        self.assertEqual(ctx.exception.code, "EINVALIDPROJECTID")
        jira.get_versions.assert_not_called()
        jira.create_version.assert_not_called()
        jira.edit_issue.assert_not_called()

    def test_version_creation_failure_is_terminal(self):
        jira = _make_jira()
        jira.create_version.side_effect = JiraApiError(400, "name is invalid")

        with self.assertRaises(ReleaseError) as ctx:
            publish(self.config, self.context, jira)

        self.assertIn("Could not create release projectId ABC", ctx.exception.message)
        self.assertEqual(ctx.exception.code, "ECREATERELEASE")
        jira.edit_issue.assert_not_called()

    def test_version_listing_failure_is_terminal(self):
        jira = _make_jira()
        jira.get_versions.side_effect = ConnectionError("reset by peer")
        with self.assertRaises(ReleaseError):
            publish(self.config, self.context, jira)
        jira.edit_issue.assert_not_called()

    def test_not_found_ticket_is_skipped(self):
        jira = _make_jira([EXISTING])
        jira.edit_issue.side_effect = [JiraApiError(404, "Issue does not exist"), None, None]

        result = publish(self.config, self.context, jira)

        self.assertEqual(result.release_id, "20001")
        self.assertEqual(jira.edit_issue.call_count, 3)
        self.context.logger.error.assert_called_once_with(
            "Unable to update issue ABC-1 statusCode: 404"
        )

    def test_bad_request_ticket_is_skipped(self):
        jira = _make_jira([EXISTING])
        jira.edit_issue.side_effect = [None, JiraApiError(400, "bad"), None]
        publish(self.config, self.context, jira)
        self.assertEqual(jira.edit_issue.call_count, 3)

    def test_json_string_failure_is_classified(self):
        jira = _make_jira([EXISTING])
        jira.edit_issue.side_effect = [Exception('{"statusCode": 404}'), None, None]
        publish(self.config, self.context, jira)
        self.context.logger.error.assert_called_once_with(
            "Unable to update issue ABC-1 statusCode: 404"
        )

    def test_server_error_aborts_remaining_tickets(self):
        jira = _make_jira([EXISTING])
        error = JiraApiError(500, "boom")
        jira.edit_issue.side_effect = [None, error, None]

        with self.assertRaises(JiraApiError) as ctx:
            publish(self.config, self.context, jira)

        self.assertIs(ctx.exception, error)
        self.assertEqual(jira.edit_issue.call_count, 2)

    def test_unparseable_failure_is_reraised(self):
        jira = _make_jira([EXISTING])
        jira.edit_issue.side_effect = Exception("socket hang up")
        with self.assertRaises(Exception):
            publish(self.config, self.context, jira)
        self.assertEqual(jira.edit_issue.call_count, 1)

    def test_invalid_ticket_regex_fails_before_any_call(self):
        config = self.config.model_copy(update={"ticket_regex": "ABC-("})
        jira = _make_jira()
        with self.assertRaises(Exception):
            publish(config, self.context, jira)
        jira.get_project.assert_not_called()

    def test_publish_with_info_logging_returns_result(self):
        jira = _make_jira([EXISTING])

        with self.assertLogs("publish", level="INFO") as logs:
            result = publish(self.config, self.context, jira)

        self.assertEqual(result.release_id, "20001")
        self.assertEqual(jira.edit_issue.call_count, 3)
        record = next(r for r in logs.records if r.getMessage() == "release_published")
        self.assertEqual(record.version_name, "v1.2.0")
        self.assertEqual(record.updated, 3)

    def test_version_failure_with_error_logging_is_wrapped(self):
        jira = _make_jira()
        jira.create_version.side_effect = JiraApiError(400, "name is invalid")

        with self.assertLogs("publish", level="ERROR") as logs:
            with self.assertRaises(ReleaseError) as ctx:
                publish(self.config, self.context, jira)

        self.assertEqual(ctx.exception.code, "ECREATERELEASE")
        self.assertEqual(logs.records[0].version_name, "v1.2.0")

    @patch("jira_client.requests.request")
    def test_created_version_through_client_with_info_logging(self, mock_request):
        jira = JiraClient("jira.example.com", "token")
        responses = {
            "GET": [_http_response({"id": "10000"}), _http_response([])],
            "POST": [_http_response({"id": "30003", "name": "v1.2.0", "projectId": 10000})],
            "PUT": [_http_response(None, 204)] * 3,
        }
        mock_request.side_effect = lambda method, url, **kwargs: responses[method].pop(0)

        with self.assertLogs(level="INFO") as logs:
            result = publish(self.config, self.context, jira)

        self.assertEqual(result.release_id, "30003")
        self.assertIn("jira_version_created", [r.getMessage() for r in logs.records])

    @patch("publish.make_client")
    def test_builds_client_when_not_given(self, mock_make_client):
        mock_make_client.return_value = _make_jira([EXISTING])
        publish(self.config, self.context)
        mock_make_client.assert_called_once_with(self.config, self.context)


class TestRenderReleaseName(unittest.TestCase):
    def test_default_template(self):
        self.assertEqual(render_release_name(None, NextRelease("2.0.0")), "v2.0.0")

    def test_custom_template(self):
        self.assertEqual(render_release_name("rel ${version}", NextRelease("2.0.0")), "rel 2.0.0")

    def test_unknown_placeholder_raises(self):
        with self.assertRaises(KeyError):
            render_release_name("${channel}-${version}", NextRelease("2.0.0"))


if __name__ == "__main__":
    unittest.main()
