"""OpenAI-compatible gateway adapter.

- URL: {base_url}/chat/completions
- Auth: Authorization: Bearer <api_key>

The request body carries only model/messages/stream (plus temperature and
max_tokens when set). The response body is not parsed here: it is handed to
the relay as raw bytes.
"""

from typing import Any, AsyncIterator, Dict, Optional

import httpx

from cycle_coach.config.settings import settings
from cycle_coach.domain.exceptions import (
    ApiError,
    BusinessError,
    ConfigurationError,
    NetworkError,
    QuotaExceededError,
    RateLimitError,
)
from cycle_coach.domain.models import ChatRequest
from cycle_coach.infrastructure.logging.logger import logger
from cycle_coach.providers.registry import ModelConfig, ProviderConfig, get_provider_config

MIN_API_KEY_LENGTH = 10


class GatewayStream:
    """Open streaming response plus the client that owns its connection."""

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient):
        self._response = response
        self._client = client
        self._closed = False
        self.status_code = response.status_code

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.TransportError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class GatewayClient:
    """Streaming client for the AI gateway."""

    name = "gateway"

    def __init__(self, cfg=settings):
        self._settings = cfg
        self._provider_cfg: ProviderConfig = get_provider_config(self.name)

    async def open_stream(self, req: ChatRequest) -> GatewayStream:
        api_key = self._require_api_key()
        model_cfg = self._model_config(req.model)
        payload = self._build_payload(req, model_cfg)
        base = getattr(self._settings, "gateway_base_url", None) or self._provider_cfg.base_url

        client = httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False)
        try:
            request = client.build_request(
                "POST",
                f"{base.rstrip('/')}/chat/completions",
                json=payload,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
            resp = await client.send(request, stream=True)
        except httpx.RequestError as e:
            await client.aclose()
            raise NetworkError(code="NETWORK_ERROR", message=str(e))

        if resp.status_code >= 400:
            try:
                body = (await resp.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body = ""
            finally:
                await resp.aclose()
                await client.aclose()
            raise self._map_error(resp.status_code, resp.reason_phrase, body)

        return GatewayStream(resp, client)

    # ---- helpers ----

    def _require_api_key(self) -> str:
        api_key = getattr(self._settings, "gateway_api_key", None)
        if not api_key:
            raise ConfigurationError(code="MISSING_API_KEY", message="GATEWAY_API_KEY is not configured")
        if len(api_key) < MIN_API_KEY_LENGTH:
            raise ConfigurationError(code="INVALID_API_KEY", message="GATEWAY_API_KEY seems too short")
        return api_key

    def _model_config(self, logical_name: str) -> ModelConfig:
        try:
            return self._provider_cfg.models[logical_name]
        except KeyError:
            raise ConfigurationError(code="UNKNOWN_MODEL", message=f"Unknown model: {logical_name!r}")

    @staticmethod
    def _build_payload(req: ChatRequest, model_cfg: ModelConfig) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model_cfg.provider_model,
            "messages": [m.to_payload() for m in req.messages],
            "stream": True,
        }
        temperature = req.temperature if req.temperature is not None else model_cfg.default_temperature
        if temperature is not None:
            payload["temperature"] = temperature
        max_tokens = req.max_tokens or model_cfg.max_tokens
        if max_tokens:
            payload["max_tokens"] = max_tokens
        return payload

    @staticmethod
    def _map_error(status: int, reason: Optional[str], body: str) -> BusinessError:
        if status == 429:
            return RateLimitError(code="RATE_LIMIT", message="Rate limits exceeded, please try again later.")
        if status == 402:
            return QuotaExceededError(
                code="PAYMENT_REQUIRED",
                message="Payment required, please add funds to your AI workspace.",
            )
        if status in (401, 403):
            logger.error(
                "Gateway rejected credential",
                extra={"extra": {"upstream_status": status, "upstream_reason": reason}},
            )
            return ConfigurationError(
                code="INVALID_API_KEY",
                message="AI gateway rejected the configured credential",
                upstream_status=status,
            )
        logger.error(
            "AI gateway error",
            extra={"extra": {"upstream_status": status, "upstream_reason": reason, "upstream_body": body[:500]}},
        )
        return ApiError(
            code="API_ERROR",
            message="AI gateway error",
            upstream_status=status,
            upstream_reason=reason,
            upstream_body=body,
        )
