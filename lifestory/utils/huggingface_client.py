"""
Hugging Face Inference API client for conversational and text-generation models.
"""

from typing import Any, Dict, Optional

import requests

from .config import HuggingFaceConfig
from .logging_config import get_logger

logger = get_logger(__name__)


class HuggingFaceError(Exception):
    """Custom exception for Hugging Face Inference API errors."""
    pass


class ModelLoadingError(HuggingFaceError):
    """The model is still warming up (HTTP 503)."""
    pass


class HuggingFaceClient:
    """Thin client for the hosted inference endpoint of one model."""

    def __init__(self, config: HuggingFaceConfig, model_name: str, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: HuggingFaceConfig with endpoint, token and generation parameters
            model_name: Repository id of the model, e.g. 'microsoft/DialoGPT-medium'
            session: Optional requests session, mostly for tests
        """
        self.config = config
        self.model_name = model_name
        self.url = f"{config.api_url.rstrip('/')}/{model_name}"
        self.session = session or requests.Session()

        logger.debug(f'Initialized Hugging Face client for model: {model_name}')

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.config.api_token:
            headers['Authorization'] = f'Bearer {self.config.api_token}'
        return headers

    def parameters(self) -> Dict[str, Any]:
        return {
            'return_full_text': False,
            'max_new_tokens': self.config.max_new_tokens,
            'temperature': self.config.temperature,
            'do_sample': True,
        }

    def infer(self, payload: Dict[str, Any]) -> Any:
        """
        POST a payload to the model and return the decoded JSON body.

        Args:
            payload: Request body, e.g. {'inputs': ..., 'parameters': ...}

        Returns:
            Decoded JSON response in whatever shape the model produces

        Raises:
            ModelLoadingError: If the model is loading (HTTP 503)
            HuggingFaceError: On transport errors, other HTTP errors or an undecodable body
        """
        try:
            response = self.session.post(self.url, json=payload, headers=self._headers(), timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.warning(f'Hugging Face request to {self.model_name} failed: {e}')
            raise HuggingFaceError(f'Request to {self.model_name} failed: {e}')

        if response.status_code == 503:
            logger.info(f'Model {self.model_name} is loading')
            raise ModelLoadingError(f'Model {self.model_name} is loading')

        if not response.ok:
            logger.warning(f'Model {self.model_name} returned HTTP {response.status_code}')
            raise HuggingFaceError(f'Model {self.model_name} returned HTTP {response.status_code}')

        try:
            return response.json()
        except ValueError as e:
            raise HuggingFaceError(f'Model {self.model_name} returned a non-JSON body: {e}')

    def health_check(self) -> bool:
        """
        Perform a health check on the model endpoint.

        Returns:
            True if the endpoint answers (a loading model counts as reachable), False otherwise
        """
        try:
            self.infer({'inputs': 'Hi', 'parameters': {'max_new_tokens': 5}})
            return True
        except ModelLoadingError:
            return True
        except Exception as e:
            logger.error(f'Hugging Face health check failed for {self.model_name}: {e}')
            return False
