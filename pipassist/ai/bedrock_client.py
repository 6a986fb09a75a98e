"""
AWS Bedrock client for answer guidance and form checking.
Handles communication with AWS Bedrock API with comprehensive error handling.
"""

import base64
import json
import logging
import time
from typing import Dict, Any, Optional, List
import boto3
from botocore.exceptions import ClientError, NoCredentialsError, BotoCoreError
from pipassist.interfaces import CompletionClientInterface
from pipassist.exceptions import AIServiceError, NetworkError
from pipassist.models import Attachment


NOVA_IMAGE_FORMATS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/gif": "gif",
    "image/webp": "webp",
}

NOVA_DOCUMENT_FORMATS = {
    "application/pdf": "pdf",
    "text/plain": "txt",
    "text/csv": "csv",
    "text/html": "html",
    "text/markdown": "md",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
}


class BedrockClient(CompletionClientInterface):
    """AWS Bedrock client for completion requests."""

    def __init__(self, region: str = "us-east-1", model_id: str = "anthropic.claude-3-sonnet-20240229-v1:0",
                 retry_attempts: int = 3):
        """Initialize Bedrock client."""
        self.region = region
        self.model_id = model_id
        self.retry_attempts = retry_attempts
        self.logger = logging.getLogger(__name__)

        try:
            self.client = boto3.client('bedrock-runtime', region_name=region)
        except NoCredentialsError:
            raise AIServiceError(
                "AWS credentials not found",
                "Please configure AWS credentials using AWS CLI, environment variables, or IAM roles"
            )
        except BotoCoreError as e:
            raise AIServiceError(f"Failed to initialize Bedrock client: {e}")

    @property
    def model_family(self) -> str:
        model = self.model_id.lower()
        if "claude" in model:
            return "claude"
        if "nova" in model:
            return "nova"
        return "generic"

    def send_request(self, prompt: str, max_tokens: int = 2000, temperature: float = 0.3,
                     attachments: Optional[List[Attachment]] = None) -> str:
        """Send request to AWS Bedrock and return the response text."""
        if not prompt.strip():
            raise AIServiceError("Empty prompt provided")

        # Validate parameters
        if max_tokens <= 0 or max_tokens > 100000:
            raise AIServiceError(f"Invalid max_tokens: {max_tokens}. Must be between 1 and 100000")

        if temperature < 0 or temperature > 1:
            raise AIServiceError(f"Invalid temperature: {temperature}. Must be between 0 and 1")

        body = self.build_body(prompt, max_tokens, temperature, attachments or [])
        retry_count = max(1, self.retry_attempts)

        # Retry logic with exponential backoff
        for attempt in range(retry_count):
            try:
                self.logger.info(f"Sending request to Bedrock model: {self.model_id} (attempt {attempt + 1}/{retry_count})")

                response = self.client.invoke_model(
                    modelId=self.model_id,
                    body=json.dumps(body),
                    contentType="application/json",
                    accept="application/json"
                )

                response_body = json.loads(response['body'].read())
                response_text = self.extract_text(response_body)

                self.logger.info(f"Successfully received response from Bedrock (length: {len(response_text)})")
                return response_text.strip()

            except ClientError as e:
                error_code = e.response['Error']['Code']
                error_message = e.response['Error']['Message']

                if error_code == 'ValidationException':
                    raise AIServiceError(f"Invalid request parameters: {error_message}")
                elif error_code == 'ResourceNotFoundException':
                    raise AIServiceError(f"Model not found: {self.model_id}")
                elif error_code == 'AccessDeniedException':
                    raise AIServiceError(
                        "Access denied to Bedrock service",
                        "Please ensure your AWS credentials have bedrock:InvokeModel permissions"
                    )
                elif error_code in ('ThrottlingException', 'ServiceUnavailableException'):
                    if attempt < retry_count - 1:
                        wait_time = (2 ** attempt) + 1  # Exponential backoff
                        self.logger.warning(f"Bedrock returned {error_code}, retrying in {wait_time} seconds...")
                        time.sleep(wait_time)
                        continue
                    raise NetworkError(f"{error_code} after {retry_count} attempts: {error_message}")
                else:
                    raise AIServiceError(f"Bedrock API error ({error_code}): {error_message}")

            except BotoCoreError as e:
                if attempt < retry_count - 1:
                    wait_time = (2 ** attempt) + 1
                    self.logger.warning(f"Network error, retrying in {wait_time} seconds: {e}")
                    time.sleep(wait_time)
                    continue
                raise NetworkError(f"Network error after {retry_count} attempts: {e}")
            except json.JSONDecodeError as e:
                if attempt < retry_count - 1:
                    wait_time = (2 ** attempt) + 1
                    self.logger.warning(f"JSON decode error, retrying in {wait_time} seconds: {e}")
                    time.sleep(wait_time)
                    continue
                raise AIServiceError(f"Failed to parse Bedrock response after {retry_count} attempts: {e}")

        # This should never be reached due to the retry logic above
        raise AIServiceError("Failed to get response after all retry attempts")

    def build_body(self, prompt: str, max_tokens: int, temperature: float,
                   attachments: List[Attachment]) -> Dict[str, Any]:
        """Prepare the request body for the configured model family."""
        family = self.model_family

        if family == "claude":
            if attachments:
                content = [self._claude_block(item) for item in attachments]
                content.append({"type": "text", "text": prompt})
            else:
                content = prompt
            return {
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": [
                    {
                        "role": "user",
                        "content": content
                    }
                ]
            }

        if family == "nova":
            content = [self._nova_block(item) for item in attachments]
            content.append({"text": prompt})
            return {
                "messages": [
                    {
                        "role": "user",
                        "content": content
                    }
                ],
                "inferenceConfig": {
                    "max_new_tokens": max_tokens,
                    "temperature": temperature,
                    "top_p": 0.9
                }
            }

        if attachments:
            raise AIServiceError(f"Model {self.model_id} does not accept file attachments")

        # Generic format for other models
        return {
            "inputText": prompt,
            "textGenerationConfig": {
                "maxTokenCount": max_tokens,
                "temperature": temperature,
                "topP": 0.9
            }
        }

    def extract_text(self, response_body: Dict[str, Any]) -> str:
        """Extract the response text based on model type."""
        family = self.model_family

        if family == "claude":
            if 'content' in response_body and response_body['content']:
                response_text = response_body['content'][0].get('text', '')
            else:
                raise AIServiceError("Invalid response format from Claude model")
        elif family == "nova":
            message = response_body.get('output', {}).get('message', {})
            if message.get('content'):
                response_text = message['content'][0].get('text', '')
            else:
                raise AIServiceError("Invalid response format from Nova model")
        else:
            if 'results' in response_body and response_body['results']:
                response_text = response_body['results'][0].get('outputText', '')
            else:
                raise AIServiceError("Invalid response format from model")

        if not response_text or not response_text.strip():
            raise AIServiceError("Empty response from model")
        return response_text

    def _claude_block(self, attachment: Attachment) -> Dict[str, Any]:
        block_type = "image" if attachment.media_type.startswith("image/") else "document"
        return {
            "type": block_type,
            "source": {
                "type": "base64",
                "media_type": attachment.media_type,
                "data": base64.b64encode(attachment.data).decode("ascii"),
            },
        }

    def _nova_block(self, attachment: Attachment) -> Dict[str, Any]:
        encoded = base64.b64encode(attachment.data).decode("ascii")
        if attachment.media_type in NOVA_IMAGE_FORMATS:
            return {
                "image": {
                    "format": NOVA_IMAGE_FORMATS[attachment.media_type],
                    "source": {"bytes": encoded},
                }
            }
        if attachment.media_type in NOVA_DOCUMENT_FORMATS:
            return {
                "document": {
                    "format": NOVA_DOCUMENT_FORMATS[attachment.media_type],
                    "name": attachment.name.rsplit(".", 1)[0][:200] or "document",
                    "source": {"bytes": encoded},
                }
            }
        raise AIServiceError(f"Unsupported attachment type for Nova: {attachment.media_type}")

    def is_available(self) -> bool:
        """Check if Bedrock service is available."""
        try:
            self.send_request("Hello", max_tokens=10)
            return True
        except (AIServiceError, NetworkError) as e:
            self.logger.warning(f"Bedrock service not available: {e}")
            return False

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the current model."""
        return {
            "model_id": self.model_id,
            "region": self.region,
            "family": self.model_family,
        }
