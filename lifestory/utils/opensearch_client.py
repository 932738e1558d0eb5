"""
OpenSearch client wrapper for conversation turn and note storage.
"""

from typing import Any, Dict, List, Optional

import boto3
from opensearchpy import OpenSearch, RequestsHttpConnection
from opensearchpy.exceptions import OpenSearchException
from requests_aws4auth import AWS4Auth

from .config import OpenSearchConfig
from .logging_config import get_logger

logger = get_logger(__name__)

INDEX_MAPPINGS = {
    'turn': {
        'properties': {
            'person_id': {
                'type': 'keyword'
            },
            'session_id': {
                'type': 'keyword'
            },
            'user_message': {
                'type': 'text'
            },
            'ai_response': {
                'type': 'text'
            },
            'language': {
                'type': 'keyword'
            },
            'timestamp': {
                'type': 'date'
            },
            'history_snapshot': {
                'type': 'object',
                'enabled': False
            }
        }
    },
    'note': {
        'properties': {
            'person_id': {
                'type': 'keyword'
            },
            'text': {
                'type': 'text'
            },
            'language': {
                'type': 'keyword'
            },
            'timestamp': {
                'type': 'date'
            }
        }
    }
}


class OpenSearchError(Exception):
    """Custom exception for OpenSearch errors."""
    pass


class OpenSearchClient:
    """OpenSearch client with AWS authentication and error handling."""

    def __init__(self, config: OpenSearchConfig, client: Optional[OpenSearch] = None):
        """
        Initialize OpenSearch client.

        Args:
            config: OpenSearchConfig instance with connection parameters
            client: Pre-built OpenSearch client, skips AWS authentication setup
        """
        self.config = config

        if client is not None:
            self.client = client
        else:
            # Get AWS credentials and create auth
            credentials = boto3.Session().get_credentials()
            auth = AWS4Auth(region=config.region, service='aoss', refreshable_credentials=credentials)
            endpoint = config.endpoint
            if '://' in endpoint:
                # Remove protocol if present
                endpoint = endpoint.split('://', 1)[1]

            self.client = OpenSearch(hosts=[{
                'host': endpoint,
                'port': config.port
            }],
                                     http_auth=auth,
                                     use_ssl=True,
                                     verify_certs=True,
                                     connection_class=RequestsHttpConnection)

        logger.info(f'Initialized OpenSearch client for endpoint: {config.endpoint}')

    def index_name(self, index_type: str) -> str:
        return f'{self.config.index_name}_{index_type}'

    def create_index_if_not_exists(self, index_type: str = 'turn') -> bool:
        """
        Create index if it doesn't exist.

        Args:
            index_type: Type of index (turn or note)

        Returns:
            True if index was created or already exists
        """
        index_name = self.index_name(index_type)

        try:
            if self.client.indices.exists(index=index_name):
                logger.debug(f'Index {index_name} already exists')
                return True

            self.client.indices.create(index=index_name, body={'mappings': INDEX_MAPPINGS[index_type]})
            logger.info(f'Created index {index_name}')
            return True

        except OpenSearchException as e:
            logger.error(f'Error creating index {index_name}: {e}')
            raise OpenSearchError(f'Failed to create index: {e}')
        except Exception as e:
            logger.error(f'Unexpected error creating index {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error creating index: {e}')

    def index_document(self, document: Dict[str, Any], index_type: str = 'turn') -> str:
        """
        Index a document.

        Args:
            document: Document to index
            index_type: Type of index (turn or note)

        Returns:
            Id assigned to the document
        """
        index_name = self.index_name(index_type)

        try:
            response = self.client.index(index=index_name, body=document)

            if response.get('result') not in ['created', 'updated']:
                logger.warning(f'Unexpected result indexing document: {response}')
                raise OpenSearchError(f"Unexpected index result: {response.get('result')}")

            logger.debug(f'Indexed document in {index_name}')
            return response['_id']

        except OpenSearchException as e:
            logger.error(f'Error indexing document: {e}')
            raise OpenSearchError(f'Failed to index document: {e}')
        except OpenSearchError:
            raise
        except Exception as e:
            logger.error(f'Unexpected error indexing document: {e}')
            raise OpenSearchError(f'Unexpected error indexing document: {e}')

    def filtered_search(self,
                        filters: Dict[str, str],
                        size: int = 100,
                        ascending: bool = False,
                        index_type: str = 'turn',
                        text_query: Optional[str] = None,
                        text_fields: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """
        Search documents by exact term filters, optionally narrowed by a phrase query.

        Args:
            filters: Field to exact value; empty dict matches everything
            size: Maximum number of documents to return
            ascending: Sort by timestamp ascending instead of descending
            index_type: Type of index (turn or note)
            text_query: Phrase that must appear in one of text_fields
            text_fields: Fields searched by text_query

        Returns:
            List of {'id', 'document'} dictionaries ordered by timestamp
        """
        index_name = self.index_name(index_type)

        query: Dict[str, Any] = {'bool': {'filter': [{'term': {field: value}} for field, value in filters.items()]}}
        if text_query:
            query['bool']['must'] = [{'multi_match': {'query': text_query, 'type': 'phrase', 'fields': text_fields or []}}]

        search_body = {'size': size, 'query': query, 'sort': [{'timestamp': {'order': 'asc' if ascending else 'desc'}}]}

        try:
            if not self.client.indices.exists(index=index_name):
                return []

            response = self.client.search(index=index_name, body=search_body)

            results = [{'id': hit['_id'], 'document': hit['_source']} for hit in response['hits']['hits']]
            logger.debug(f'Filtered search on {index_name} returned {len(results)} documents')
            return results

        except OpenSearchException as e:
            logger.error(f'Error searching {index_name}: {e}')
            raise OpenSearchError(f'Search failed: {e}')
        except Exception as e:
            logger.error(f'Unexpected error searching {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error in search: {e}')

    def distinct_values(self, field: str, index_type: str = 'turn', size: int = 1000) -> List[str]:
        """
        List distinct values of a keyword field using a terms aggregation.

        Args:
            field: Keyword field to aggregate
            index_type: Type of index (turn or note)
            size: Maximum number of buckets

        Returns:
            Distinct field values
        """
        index_name = self.index_name(index_type)
        search_body = {'size': 0, 'aggs': {'distinct': {'terms': {'field': field, 'size': size}}}}

        try:
            if not self.client.indices.exists(index=index_name):
                return []

            response = self.client.search(index=index_name, body=search_body)
            return [bucket['key'] for bucket in response['aggregations']['distinct']['buckets']]

        except OpenSearchException as e:
            logger.error(f'Error aggregating {field} on {index_name}: {e}')
            raise OpenSearchError(f'Aggregation failed: {e}')
        except Exception as e:
            logger.error(f'Unexpected error aggregating {field} on {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error in aggregation: {e}')

    def health_check(self) -> bool:
        """
        Perform a health check on the OpenSearch service.

        Returns:
            True if service is healthy, False otherwise
        """
        try:
            response = self.client.indices.exists(index=self.index_name('turn'))

            return response in [True, False]

        except Exception as e:
            logger.error(f'OpenSearch health check failed: {e}')
            return False
