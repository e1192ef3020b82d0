"""Tests for request construction."""

import dataclasses

import pytest

from kazama import InvalidArgument
from kazama.builder import (
    VALID_ROLES,
    build_chat,
    build_embeddings,
    build_list_models,
    build_list_running,
    build_pull,
    build_push,
)


class TestChatRequest:
    """Test chat request construction."""

    @pytest.mark.parametrize("role", VALID_ROLES)
    def test_body_carries_exact_values(self, role):
        request = build_chat("gemma:2b", "why is the moon white", role)

        assert request.method == "POST"
        assert request.path == "/api/chat"
        assert request.body == {
            "model": "gemma:2b",
            "messages": [{"role": role, "content": "why is the moon white"}],
            "stream": False,
        }
        assert request.stream is False

    def test_unknown_role_rejected(self):
        with pytest.raises(InvalidArgument, match="role must be one of"):
            build_chat("llama2", "hi", "tool")

    @pytest.mark.parametrize("model", ["", "   ", None])
    def test_empty_model_rejected(self, model):
        with pytest.raises(InvalidArgument):
            build_chat(model, "hi", "user")

    def test_empty_content_allowed(self):
        assert build_chat("llama2", "", "user").body["messages"][0]["content"] == ""

    def test_non_string_content_rejected(self):
        with pytest.raises(InvalidArgument, match="content must be a string"):
            build_chat("llama2", 42, "user")


class TestProgressRequests:
    """Test pull and push request construction."""

    @pytest.mark.parametrize("build, path", [(build_pull, "/api/pull"), (build_push, "/api/push")])
    def test_stream_flag_in_body(self, build, path):
        streaming = build("llama2", True)
        buffered = build("llama2", False)

        assert streaming.path == path
        assert streaming.body == {"name": "llama2", "stream": True}
        assert streaming.stream is True
        assert buffered.body == {"name": "llama2", "stream": False}
        assert buffered.stream is False

    @pytest.mark.parametrize("build", [build_pull, build_push])
    def test_empty_name_rejected(self, build):
        with pytest.raises(InvalidArgument, match="name must be a non-empty string"):
            build("", True)


class TestOtherRequests:
    def test_embeddings(self):
        request = build_embeddings("llama2", "hello")
        assert request.method == "POST"
        assert request.path == "/api/embeddings"
        assert request.body == {"model": "llama2", "prompt": "hello"}

    def test_embeddings_empty_model_rejected(self):
        with pytest.raises(InvalidArgument):
            build_embeddings("", "hello")

    def test_listing_requests_have_no_body(self):
        assert build_list_models().method == "GET"
        assert build_list_models().path == "/api/tags"
        assert build_list_models().to_dict() is None
        assert build_list_running().path == "/api/ps"


class TestImmutability:
    """Built requests never change after construction."""

    def test_frozen(self):
        request = build_pull("llama2")
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.path = "/api/push"

    def test_to_dict_returns_copy(self):
        request = build_chat("llama2", "hi", "user")
        body = request.to_dict()
        body["messages"][0]["content"] = "changed"
        body["model"] = "other"

        assert request.body["messages"][0]["content"] == "hi"
        assert request.body["model"] == "llama2"
