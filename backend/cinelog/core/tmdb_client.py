import requests
import logging
from typing import Dict, Optional
from .interfaces import TMDBClientInterface, TMDBResponse, TMDBConfig, TMDBError

logger = logging.getLogger(__name__)

class TMDBClient(TMDBClientInterface):
    """Concrete implementation of TMDB client"""

    def __init__(self, config: TMDBConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "accept": "application/json"
        })

    def make_request(self, endpoint: str, params: Dict = None, timeout: Optional[float] = None) -> TMDBResponse:
        """Make HTTP request to TMDB API"""
        url = f"{self.config.base_url}/{endpoint.lstrip('/')}"
        params = dict(params or {})
        params['api_key'] = self.config.api_key
        if self.config.language:
            params['language'] = self.config.language

        try:
            logger.info(f"Making request to: {url}")
            response = self.session.get(url, params=params, timeout=timeout or self.config.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request exception: {str(e)}")
            raise TMDBError(f"Request failed: {str(e)}")

        if response.status_code == 200:
            return TMDBResponse(response.json(), response.status_code, True)

        logger.error(f"API request failed: {response.status_code} - {response.text}")
        return TMDBResponse({}, response.status_code, False)
