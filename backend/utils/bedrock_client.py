"""AWS Bedrock client wrapper with retry logic and error handling."""

import asyncio
import logging
import os
import time
from typing import Dict, List, Optional, Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from dotenv import load_dotenv

from .errors import BedrockAPIError, ErrorType, ErrorContext

load_dotenv()

logger = logging.getLogger(__name__)


class BedrockClient:
    """
    Wrapper for the AWS Bedrock Runtime Converse API.

    Retry policy for document extraction lives here: retryable error
    codes are retried with exponential backoff, everything else is
    raised as a BedrockAPIError.
    """

    RETRYABLE_ERRORS = frozenset({
        "ThrottlingException",
        "TooManyRequestsException",
        "ServiceUnavailableException",
        "InternalServerException",
        "RequestTimeout",
        "RequestTimeoutException",
        "ModelTimeoutException",
    })

    def __init__(
        self,
        region: str = "us-east-1",
        model_id: str = "amazon.nova-pro-v1:0",
        timeout: int = 120,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        runtime: Optional[Any] = None
    ):
        """
        Initialize Bedrock client.

        Args:
            region: AWS region for Bedrock service
            model_id: Multimodal model used for document extraction
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts per call
            retry_base_delay: First backoff delay in seconds, doubled per attempt
            runtime: Optional pre-built bedrock-runtime client
        """
        self.region = region
        self.model_id = model_id
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

        if runtime is not None:
            self.runtime = runtime
        else:
            config_kwargs: Dict[str, Any] = {
                "region_name": region,
                "connect_timeout": timeout,
                "read_timeout": timeout,
                "retries": {"max_attempts": 0},  # retries handled in converse()
            }

            # Bedrock API keys use bearer-token auth instead of SigV4
            if os.getenv("AWS_BEARER_TOKEN_BEDROCK"):
                config_kwargs["signature_version"] = "bearer"
                logger.info("BedrockClient configured to use Amazon Bedrock API key authentication")
            else:
                logger.info("BedrockClient configured to use AWS IAM credentials (SigV4)")

            self.runtime = boto3.client("bedrock-runtime", config=Config(**config_kwargs))

        logger.info(
            f"Initialized BedrockClient: region={region}, "
            f"model={model_id}, max_retries={max_retries}"
        )

    async def converse(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.1,
        max_tokens: int = 1000,
        system_prompts: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """
        Invoke the extraction model via the Converse API with retry logic.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            system_prompts: Optional system prompts

        Returns:
            Dict containing 'text', 'content', 'stop_reason' and 'usage'

        Raises:
            BedrockAPIError: If the call fails or all retry attempts are exhausted
        """
        params = {
            "modelId": self.model_id,
            "messages": messages,
            "inferenceConfig": {
                "temperature": temperature,
                "maxTokens": max_tokens
            }
        }

        if system_prompts:
            params["system"] = system_prompts

        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Invoking {self.model_id} (attempt {attempt + 1}/{self.max_retries})")

                # boto3 is blocking; keep the event loop free for concurrent extractions
                start = time.time()
                response = await asyncio.to_thread(self.runtime.converse, **params)

                logger.info(
                    f"Converse call successful in {time.time() - start:.3f}s: "
                    f"stop_reason={response.get('stopReason')}, "
                    f"usage={response.get('usage')}"
                )

                return self._parse_converse_response(response)

            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "Unknown")
                error_message = e.response.get("Error", {}).get("Message", str(e))

                logger.warning(
                    f"Bedrock API error (attempt {attempt + 1}/{self.max_retries}): "
                    f"code={error_code}, message={error_message}"
                )

                if self._is_retryable_error(error_code) and attempt < self.max_retries - 1:
                    # base, 2x base, 4x base, ...
                    wait_time = self.retry_base_delay * (2 ** attempt)
                    logger.info(f"Retrying in {wait_time} seconds...")
                    await asyncio.sleep(wait_time)
                    continue

                logger.error(
                    f"Bedrock API call failed after {attempt + 1} attempts: "
                    f"{error_code} - {error_message}"
                )
                raise BedrockAPIError.from_client_error(
                    error=e,
                    operation="converse",
                    recoverable=False
                )

            except Exception as e:
                logger.error(f"Unexpected error invoking {self.model_id}: {str(e)}")
                context = ErrorContext(
                    error_type=ErrorType.BEDROCK_SERVICE_ERROR,
                    message=f"Unexpected error invoking {self.model_id}: {str(e)}",
                    recoverable=False,
                    original_exception=e
                )
                raise BedrockAPIError(context) from e

        context = ErrorContext(
            error_type=ErrorType.BEDROCK_SERVICE_ERROR,
            message=f"Failed to invoke {self.model_id} after {self.max_retries} attempts",
            recoverable=False
        )
        raise BedrockAPIError(context)

    def _parse_converse_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """
        Parse Converse API response into a simplified format.

        Args:
            response: Raw response from Converse API

        Returns:
            Parsed response dict with 'content', 'text', 'stop_reason', 'usage'
        """
        message = response.get("output", {}).get("message", {})
        content = message.get("content", []) or []

        text_parts = [block["text"] for block in content if "text" in block]

        return {
            "content": content,
            "role": message.get("role", "assistant"),
            "stop_reason": response.get("stopReason", "unknown"),
            "usage": response.get("usage", {}),
            "text": "\n".join(text_parts),
        }

    def _is_retryable_error(self, error_code: str) -> bool:
        return error_code in self.RETRYABLE_ERRORS
