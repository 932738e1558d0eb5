"""
Health check utilities for the application.
"""

from typing import Any, Dict, List, Optional

from .bedrock_llm import BedrockLLM
from .config import config
from .huggingface_client import HuggingFaceClient
from .logging_config import get_logger
from .opensearch_client import OpenSearchClient

logger = get_logger(__name__)


def check_health(health_status: Optional[Dict[str, Any]] = None) -> bool:
    """Check the health of all system components.

    Args:
        health_status: Status already collected by get_health_status, collected fresh when None

    Returns:
        True if all components are healthy, False otherwise
    """
    try:
        if health_status is None:
            health_status = get_health_status()

        all_healthy = all(status.get('healthy', False) for status in health_status.values())

        if all_healthy:
            logger.info('All system components are healthy')
        else:
            logger.warning('Some system components are unhealthy')

        return all_healthy

    except Exception as e:
        logger.error(f'Health check failed: {e}')
        return False


def _huggingface_models() -> List[str]:
    models = []
    for entry in config.conversation.sources:
        kind, _, target = entry.partition(':')
        if kind.strip().lower() in ('huggingface', 'hf') and target.strip():
            models.append(target.strip())
    return models


def get_health_status() -> Dict[str, Any]:
    """Get detailed health status of all components.

    Returns:
        Dictionary with health status of each component
    """
    health_status = {}

    # Check Hugging Face conversation models
    for model in _huggingface_models():
        key = f'huggingface:{model}'
        try:
            client = HuggingFaceClient(config.huggingface, model)
            health_status[key] = {'healthy': client.health_check(), 'service': 'Hugging Face Inference API', 'model': model}
        except Exception as e:
            health_status[key] = {'healthy': False, 'service': 'Hugging Face Inference API', 'error': str(e)}

    # Check Bedrock LLM
    if config.biography.generator == 'bedrock' or any(s.strip().lower().startswith('bedrock') for s in config.conversation.sources):
        try:
            llm = BedrockLLM(config.bedrock_llm)
            health_status['bedrock_llm'] = {
                'healthy': llm.health_check(),
                'service': 'Amazon Bedrock LLM',
                'model': config.bedrock_llm.model_id
            }
        except Exception as e:
            health_status['bedrock_llm'] = {'healthy': False, 'service': 'Amazon Bedrock LLM', 'error': str(e)}

    # Check OpenSearch
    if config.storage.backend == 'opensearch':
        try:
            opensearch = OpenSearchClient(config.opensearch)
            health_status['opensearch'] = {
                'healthy': opensearch.health_check(),
                'service': 'Amazon OpenSearch',
                'endpoint': config.opensearch.endpoint
            }
        except Exception as e:
            health_status['opensearch'] = {'healthy': False, 'service': 'Amazon OpenSearch', 'error': str(e)}

    return health_status


def get_system_info() -> Dict[str, Any]:
    """Get system information and configuration.

    Returns:
        Dictionary with system information
    """
    return {
        'service_name': 'Life Story',
        'version': '1.0.0',
        'configuration': {
            'environment': config.environment,
            'conversation_sources': list(config.conversation.sources),
            'biography_generator': config.biography.generator,
            'storage_backend': config.storage.backend,
            'default_language': config.conversation.default_language,
            'aws_region': config.bedrock_llm.region
        },
        'health_status': get_health_status()
    }
