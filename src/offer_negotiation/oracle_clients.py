"""Language-model clients used as the external decision oracle."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp
import httpx

from offer_negotiation.errors import OracleError

logger = logging.getLogger(__name__)

ORACLE_SYSTEM_PROMPT = (
    "You decide whether a service provider accepts an offer. "
    "The input is a comma-separated list of past offers, each a price "
    "followed by Y (accepted) or N (not accepted), and ends with the price "
    "of the pending offer. Answer with a single letter: Y or N."
)


class BaseOracleClient(ABC):
    """Abstract base class for oracle clients"""
    
    def __init__(self, model: str, timeout: float = 60.0):
        self.model = model
        self.timeout = timeout
    
    @abstractmethod
    async def complete(self, prompt: str, max_tokens: int = 60) -> str:
        """Return the raw completion text for a prompt.
        
        Raises:
            OracleError: On transport, authentication or non-success responses
        """
        pass
    
    async def aclose(self) -> None:
        """Release any connections held by the client."""
        pass


class OpenAIOracleClient(BaseOracleClient):
    """OpenAI chat completions client"""
    
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        base_url: str = "https://api.openai.com/v1",
    ):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY not provided")
        
        super().__init__(model, timeout)
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
    
    async def complete(self, prompt: str, max_tokens: int = 60) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": ORACLE_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": 0,
        }
        
        logger.debug(f"OpenAI oracle request: model={self.model} prompt={prompt}")
        
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=self.headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        detail = await response.text()
                        logger.error(f"OpenAI oracle error (HTTP {response.status}): {detail}")
                        raise OracleError(
                            f"API request failed with status code {response.status}",
                            status=response.status,
                        )
                    
                    data = await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"Error calling OpenAI API: {e}")
            raise OracleError(f"OpenAI transport error: {e}") from e
        
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise OracleError(f"Malformed OpenAI response: {data}") from e
        
        logger.debug(f"OpenAI oracle response: {text!r}")
        return text or ""


class AIManagementOracleClient(BaseOracleClient):
    """Oracle routed through the AI Management service"""
    
    def __init__(
        self,
        base_url: str = "http://localhost:8001",
        provider: Optional[str] = "openai",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(model=provider or "default", timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.provider = provider
        self.transport = transport
        self.client = None
    
    async def __aenter__(self):
        """Async context manager entry"""
        self._ensure_client()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.aclose()
    
    def _ensure_client(self) -> httpx.AsyncClient:
        if not self.client:
            self.client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self.client
    
    async def aclose(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None
    
    async def complete(self, prompt: str, max_tokens: int = 60) -> str:
        payload = {
            "prompt": prompt,
            "provider": self.provider,
            "max_tokens": max_tokens,
            "temperature": 0,
            "system_prompt": ORACLE_SYSTEM_PROMPT,
            # Never serve a cached decision
            "use_cache": False,
        }
        
        try:
            response = await self._ensure_client().post(
                f"{self.base_url}/generate",
                json=payload,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"AI Management oracle error (HTTP {e.response.status_code}): {e}")
            raise OracleError(
                f"API request failed with status code {e.response.status_code}",
                status=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to reach AI Management service: {e}")
            raise OracleError(f"AI Management transport error: {e}") from e
        except ValueError as e:
            raise OracleError(f"AI Management returned invalid JSON: {e}") from e
        
        text = data.get("text") if isinstance(data, dict) else None
        if text is None:
            raise OracleError(f"Malformed AI Management response: {data}")
        return text
