"""Tests for the docker-backed runtime client."""

from __future__ import annotations

from unittest.mock import MagicMock

import docker
import pytest
import requests
from conftest import failing_chunks

from dockit.errors import DockitError, NotFoundError, RuntimeConnectionError, StreamReadError
from dockit.models import ContainerState
from dockit.runtime import (
    DockerRuntimeClient,
    LogStream,
    container_from_api,
    image_from_api,
    stats_from_api,
    translate_errors,
)


def make_client() -> tuple[DockerRuntimeClient, MagicMock]:
    sdk = MagicMock()
    sdk.api.base_url = "http+docker://localhost"
    sdk.api.api_version = "1.45"
    return DockerRuntimeClient(sdk), sdk.api


class TestLogStream:
    def test_reads_until_exhausted(self) -> None:
        stream = LogStream([b"a", b"", b"b"])
        assert stream.read() == b"a"
        assert stream.read() == b"b"
        assert stream.read() is None

    def test_close_is_idempotent(self) -> None:
        closer = MagicMock()
        stream = LogStream([b"a"], closer)
        stream.close()
        stream.close()
        closer.assert_called_once()
        assert stream.read() is None

    def test_context_manager_closes(self) -> None:
        closer = MagicMock()
        with LogStream([], closer) as stream:
            assert not stream.closed
        assert stream.closed
        closer.assert_called_once()

    def test_transport_error_becomes_stream_read_error(self) -> None:
        stream = LogStream(failing_chunks([b"a"], requests.ConnectionError("reset")))
        assert stream.read() == b"a"
        with pytest.raises(StreamReadError, match="reset"):
            stream.read()


class TestTranslateErrors:
    def test_not_found(self) -> None:
        with pytest.raises(NotFoundError), translate_errors("container x"):
            raise docker.errors.NotFound("gone")

    def test_connection(self) -> None:
        with pytest.raises(RuntimeConnectionError), translate_errors("list"):
            raise docker.errors.DockerException("no socket")

    def test_api_error(self) -> None:
        with pytest.raises(DockitError, match="start web"), translate_errors("start web"):
            raise docker.errors.APIError("conflict")


class TestConversions:
    def test_container(self) -> None:
        summary = container_from_api(
            {
                "Id": "abc",
                "Names": ["/web"],
                "Image": "nginx",
                "State": "running",
                "Status": "Up 5 minutes",
                "Ports": [{"PrivatePort": 80, "PublicPort": 8080, "Type": "tcp"}],
                "Created": 1_700_000_000,
            }
        )
        assert summary.name == "web"
        assert summary.state is ContainerState.RUNNING
        assert summary.ports[0].public_port == 8080
        assert summary.created is not None

    def test_unknown_state(self) -> None:
        assert container_from_api({"Id": "x", "State": "weird"}).state is ContainerState.UNKNOWN

    def test_image_drops_none_tags(self) -> None:
        image = image_from_api({"Id": "sha256:1", "RepoTags": ["<none>:<none>"], "Size": 10})
        assert image.tags == []

    def test_stats_cpu_percent(self) -> None:
        stats = stats_from_api(
            {
                "cpu_stats": {"cpu_usage": {"total_usage": 300}, "system_cpu_usage": 2000, "online_cpus": 2},
                "precpu_stats": {"cpu_usage": {"total_usage": 100}, "system_cpu_usage": 1000},
                "memory_stats": {"usage": 50, "limit": 200},
            }
        )
        assert stats.cpu_percent == pytest.approx(40.0)
        assert stats.memory_percent == pytest.approx(25.0)


class TestDockerRuntimeClient:
    def test_open_log_stream_requests_raw_endpoint(self) -> None:
        client, api = make_client()
        response = MagicMock(status_code=200)
        response.iter_content.return_value = iter([b"chunk"])
        api.get.return_value = response

        stream = client.open_log_stream("web", follow=True, tail_lines=100)

        url = api.get.call_args.args[0]
        params = api.get.call_args.kwargs["params"]
        assert url == "http+docker://localhost/v1.45/containers/web/logs"
        assert params["follow"] == 1
        assert params["tail"] == "100"
        assert params["stdout"] == params["stderr"] == 1
        assert api.get.call_args.kwargs["stream"] is True
        assert stream.read() == b"chunk"
        stream.close()
        response.close.assert_called_once()

    def test_zero_tail_means_all(self) -> None:
        client, api = make_client()
        api.get.return_value = MagicMock(status_code=200)
        client.open_log_stream("web", follow=False, tail_lines=0)
        assert api.get.call_args.kwargs["params"]["tail"] == "all"

    def test_open_log_stream_not_found(self) -> None:
        client, api = make_client()
        api.get.return_value = MagicMock(status_code=404)
        with pytest.raises(NotFoundError, match="nope"):
            client.open_log_stream("nope", follow=False, tail_lines=10)

    def test_open_log_stream_daemon_down(self) -> None:
        client, api = make_client()
        api.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(RuntimeConnectionError):
            client.open_log_stream("web", follow=False, tail_lines=10)

    def test_list_containers(self) -> None:
        client, api = make_client()
        api.containers.return_value = [{"Id": "1", "Names": ["/a"], "State": "exited"}]
        containers = client.list_containers(all=True)
        api.containers.assert_called_once_with(all=True)
        assert containers[0].name == "a"

    def test_remove_container_force(self) -> None:
        client, api = make_client()
        client.remove_container("web", force=True)
        api.remove_container.assert_called_once_with("web", force=True)
