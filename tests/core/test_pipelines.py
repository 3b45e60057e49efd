# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Tests for the pipeline and trigger clients."""

import httpx
import pytest

from circleci_ng.core.errors import APIError, NotFoundError
from circleci_ng.core.pipelines import PipelineRestClient, PipelineRunOptions
from circleci_ng.core.triggers import CreateTriggerOptions, TriggerRestClient

DEFINITION = {
    "id": "def-1",
    "name": "build",
    "description": "",
    "created_at": "2025-01-01T10:00:00Z",
    "config_source": {
        "provider": "github_app",
        "repo": {"external_id": "111", "full_name": "acme/config"},
        "file_path": ".circleci/config.yml",
    },
    "checkout_source": {"provider": "github_app", "repo": {"external_id": "222", "full_name": "acme/app"}},
}

RUN_PATH = "/api/v2/project/circleci/org-1/proj-1/pipeline/run"


class TestPipelineDefinitions:
    def test_create_pipeline_definition(self, make_rest, recorder) -> None:
        rec = recorder({("POST", "/api/v2/projects/proj-1/pipeline-definitions"): httpx.Response(201, json=DEFINITION)})

        definition = PipelineRestClient(make_rest(rec)).create_pipeline_definition(
            "proj-1", "build", "", "222", "111", ".circleci/config.yml"
        )

        assert definition.config_source_repo == "acme/config"
        assert definition.checkout_source_id == "222"
        body = rec.json_body()
        assert body["config_source"]["repo"] == {"external_id": "111"}
        assert body["checkout_source"] == {"provider": "github_app", "repo": {"external_id": "222"}}

    def test_list_pipeline_definitions_pages(self, make_rest, recorder) -> None:
        rec = recorder({
            ("GET", "/api/v2/projects/proj-1/pipeline-definitions"): [
                httpx.Response(200, json={"items": [DEFINITION], "next_page_token": "n"}),
                httpx.Response(200, json={"items": [dict(DEFINITION, id="def-2")], "next_page_token": None}),
            ]
        })
        definitions = PipelineRestClient(make_rest(rec)).list_pipeline_definitions("proj-1")
        assert [d.id for d in definitions] == ["def-1", "def-2"]


class TestPipelines:
    def test_latest_pipeline_on_branch(self, make_rest, recorder) -> None:
        page = {"items": [{"id": "p2", "number": 12, "vcs": {"branch": "main"}}, {"id": "p1", "number": 11}]}
        rec = recorder({("GET", "/api/v2/project/gh/acme/app/pipeline"): httpx.Response(200, json=page)})

        latest = PipelineRestClient(make_rest(rec)).latest_pipeline("gh/acme/app", "main")

        assert (latest.id, latest.number, latest.branch) == ("p2", 12, "main")
        assert rec.requests[0].url.params["branch"] == "main"

    def test_latest_pipeline_none(self, make_rest, recorder) -> None:
        rec = recorder({("GET", "/api/v2/project/gh/acme/app/pipeline"): httpx.Response(200, json={"items": []})})
        with pytest.raises(NotFoundError, match="no pipelines found for gh/acme/app on branch dev"):
            PipelineRestClient(make_rest(rec)).latest_pipeline("gh/acme/app", "dev")

    def test_list_workflows(self, make_rest, recorder) -> None:
        page = {"items": [{"id": "w1", "name": "build", "status": "success"}]}
        rec = recorder({("GET", "/api/v2/pipeline/p1/workflow"): httpx.Response(200, json=page)})
        workflows = PipelineRestClient(make_rest(rec)).list_workflows("p1")
        assert [(w.name, w.status) for w in workflows] == [("build", "success")]


class TestRunPipeline:
    def _options(self, **kwargs) -> PipelineRunOptions:
        values = dict(organization="org-1", project="proj-1", pipeline_definition_id="def-1")
        values.update(kwargs)
        return PipelineRunOptions(**values)

    def test_created(self, make_rest, recorder) -> None:
        body = {"id": "p1", "number": 5, "state": "created", "created_at": "2025-01-01T10:00:00Z"}
        rec = recorder({("POST", RUN_PATH): httpx.Response(201, json=body)})

        response = PipelineRestClient(make_rest(rec)).run_pipeline(
            self._options(config_branch="main", checkout_tag="v1", parameters={"deploy": "true"})
        )

        assert response.created
        assert response.number == 5
        assert rec.json_body() == {
            "definition_id": "def-1",
            "config": {"branch": "main"},
            "checkout": {"tag": "v1"},
            "parameters": {"deploy": "true"},
        }

    def test_message_response(self, make_rest, recorder) -> None:
        rec = recorder({("POST", RUN_PATH): httpx.Response(200, json={"message": "No pipeline triggered"})})
        response = PipelineRestClient(make_rest(rec)).run_pipeline(self._options(config_branch="main"))
        assert not response.created
        assert response.message == "No pipeline triggered"

    def test_unexpected_status(self, make_rest, recorder) -> None:
        rec = recorder({("POST", RUN_PATH): httpx.Response(202, json={"id": "p1"})})
        with pytest.raises(APIError, match="unexpected status code or response: 202"):
            PipelineRestClient(make_rest(rec)).run_pipeline(self._options(config_branch="main"))

    def test_local_config_is_inlined(self, make_rest, recorder, tmp_path) -> None:
        config = tmp_path / "config.yml"
        config.write_text("version: 2.1\n")
        rec = recorder({("POST", RUN_PATH): httpx.Response(201, json={"id": "p1"})})

        PipelineRestClient(make_rest(rec)).run_pipeline(
            self._options(config_branch="cli-run", checkout_branch="main", config_file_path=str(config))
        )

        assert rec.json_body()["config"] == {"branch": "cli-run", "content": "version: 2.1\n"}


class TestTriggers:
    def test_create_trigger(self, make_rest, recorder) -> None:
        path = "/api/v2/projects/proj-1/pipeline-definitions/def-1/triggers"
        rec = recorder({("POST", path): httpx.Response(201, json={"id": "trig-1", "event_preset": "only-tags"})})

        trigger = TriggerRestClient(make_rest(rec)).create_trigger(
            CreateTriggerOptions("proj-1", "def-1", "222", "only-tags", config_ref="main")
        )

        assert trigger.id == "trig-1"
        assert rec.json_body() == {
            "event_source": {"provider": "github_app", "repo": {"external_id": "222"}},
            "event_preset": "only-tags",
            "config_ref": "main",
        }
