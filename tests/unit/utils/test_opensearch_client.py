"""
Unit tests for the OpenSearch client wrapper.
"""

from unittest.mock import Mock

import pytest
from opensearchpy.exceptions import OpenSearchException

from lifestory.utils.opensearch_client import INDEX_MAPPINGS, OpenSearchClient, OpenSearchError


@pytest.fixture
def raw_client():
    client = Mock()
    client.indices.exists.return_value = True
    return client


@pytest.fixture
def opensearch(opensearch_config, raw_client):
    return OpenSearchClient(opensearch_config, client=raw_client)


class TestOpenSearchClient:
    """Test index management, indexing and search."""

    def test_index_names(self, opensearch):
        assert opensearch.index_name("turn") == "lifestory_turn"
        assert opensearch.index_name("note") == "lifestory_note"

    def test_create_index_when_missing(self, opensearch, raw_client):
        raw_client.indices.exists.return_value = False

        assert opensearch.create_index_if_not_exists("note") is True
        raw_client.indices.create.assert_called_once_with(index="lifestory_note", body={"mappings": INDEX_MAPPINGS["note"]})

    def test_create_index_skips_existing(self, opensearch, raw_client):
        assert opensearch.create_index_if_not_exists("turn") is True
        raw_client.indices.create.assert_not_called()

    def test_create_index_failure(self, opensearch, raw_client):
        raw_client.indices.exists.side_effect = OpenSearchException("forbidden")
        with pytest.raises(OpenSearchError):
            opensearch.create_index_if_not_exists("turn")

    def test_index_document_returns_id(self, opensearch, raw_client):
        raw_client.index.return_value = {"result": "created", "_id": "abc"}

        assert opensearch.index_document({"text": "hi"}, index_type="note") == "abc"
        raw_client.index.assert_called_once_with(index="lifestory_note", body={"text": "hi"})

    def test_index_document_passes_no_refresh(self, opensearch, raw_client):
        raw_client.index.return_value = {"result": "created", "_id": "abc"}

        opensearch.index_document({"text": "hi"})

        assert "refresh" not in raw_client.index.call_args.kwargs

    def test_index_document_unexpected_result(self, opensearch, raw_client):
        raw_client.index.return_value = {"result": "noop", "_id": "abc"}
        with pytest.raises(OpenSearchError):
            opensearch.index_document({"text": "hi"})

    def test_filtered_search_body(self, opensearch, raw_client):
        raw_client.search.return_value = {"hits": {"hits": [{"_id": "1", "_source": {"person_id": "nana"}}]}}

        results = opensearch.filtered_search({"person_id": "nana"},
                                             size=10,
                                             ascending=True,
                                             text_query="mango",
                                             text_fields=["user_message"])

        assert results == [{"id": "1", "document": {"person_id": "nana"}}]
        body = raw_client.search.call_args.kwargs["body"]
        assert body["size"] == 10
        assert body["sort"] == [{"timestamp": {"order": "asc"}}]
        assert body["query"]["bool"]["filter"] == [{"term": {"person_id": "nana"}}]
        assert body["query"]["bool"]["must"][0]["multi_match"]["query"] == "mango"

    def test_filtered_search_missing_index(self, opensearch, raw_client):
        raw_client.indices.exists.return_value = False

        assert opensearch.filtered_search({}) == []
        raw_client.search.assert_not_called()

    def test_filtered_search_failure(self, opensearch, raw_client):
        raw_client.search.side_effect = OpenSearchException("bad query")
        with pytest.raises(OpenSearchError):
            opensearch.filtered_search({})

    def test_distinct_values(self, opensearch, raw_client):
        raw_client.search.return_value = {"aggregations": {"distinct": {"buckets": [{"key": "nana"}, {"key": "abba"}]}}}
        assert opensearch.distinct_values("person_id") == ["nana", "abba"]

    def test_health_check(self, opensearch, raw_client):
        assert opensearch.health_check() is True
        raw_client.indices.exists.side_effect = ConnectionError("unreachable")
        assert opensearch.health_check() is False
